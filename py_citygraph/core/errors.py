"""Exceptions raised while building a city."""


class CitygraphError(Exception):
    """Base class for city building errors."""


class UnsatisfiableConfigError(CitygraphError):
    """The configuration cannot be met; the whole build is abandoned."""


class CannotMeetDesiredDistrictsError(UnsatisfiableConfigError):
    """Not enough district sites could be placed to meet configured minimums."""

    def __init__(self, placed: int, required: int):
        super().__init__(
            f"failed to place full number of desired districts: cant fit {placed} of {required}"
        )
        self.placed = placed
        self.required = required


class DockPlacementError(UnsatisfiableConfigError):
    """A docks district could be neither swapped nor reassigned."""


class MissingDistrictConfigError(UnsatisfiableConfigError):
    """No DistrictConfig exists for a district type that is in use."""

    def __init__(self, district_type):
        super().__init__(f"no config for district type {district_type}")
        self.district_type = district_type


class BuildingPlacementError(UnsatisfiableConfigError):
    """A footprint with a minimum count could not be placed in its district."""


class GateDoesNotFitError(CitygraphError):
    """A gatehouse indent cannot be fitted on a wall edge."""


class SiteNotFoundError(CitygraphError):
    """A district refers to a site id the Voronoi graph does not have."""

    def __init__(self, site_id: int):
        super().__init__(f"site not found for id {site_id}")
        self.site_id = site_id
