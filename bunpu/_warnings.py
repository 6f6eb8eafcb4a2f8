"""Custom warning classes for the bunpu package.

These warning classes allow users to programmatically filter, suppress,
or capture warnings using Python's standard ``warnings`` module.

Example:
    Suppress configuration warnings in a batch of quick runs::

        import warnings
        from bunpu._warnings import ConfigurationWarning

        warnings.filterwarnings("ignore", category=ConfigurationWarning)
"""


class BunpuWarning(UserWarning):
    """Base class for all bunpu warnings."""


class ConfigurationWarning(BunpuWarning):
    """Valid but suspicious simulation configuration.

    Raised during config validation when a parameter is legal yet likely
    to give a meaningless answer (e.g., a handful of trials, or a walk that
    starts already ruined).
    """
