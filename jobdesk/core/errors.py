"""Exceptions raised by table construction and mode-specific handlers.

The processing pipeline itself never raises for bad row data. These errors only
cover caller mistakes:
- DataTableConfigError: invalid configuration passed at construction
- DataTableModeError: a handler that belongs to the other mode was called
"""


class DataTableConfigError(ValueError):
    """Raised when a table is constructed with invalid configuration.

    Examples:
    - Two columns with the same id
    - A page size below 1
    - A negative search debounce delay
    - Remote mode without an `on_params_change` listener
    """

    pass


class DataTableModeError(RuntimeError):
    """Raised when a handler is used on a table of the wrong mode.

    Local tables own their rows (`set_rows`); remote tables receive rows from
    their owner (`update_remote`). The mode is fixed at construction, so these
    calls are contract violations rather than transitions.
    """

    pass
