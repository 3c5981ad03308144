"""Type aliases for data structures."""

# Type for LedgerEntry.to_dict() output
LedgerRowDict = dict[str, str | float | None]

# Type for records handed to output writers
ExportRecord = dict[str, str | int | float | bool | None]
