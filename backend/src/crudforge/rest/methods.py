from enum import Enum


class Method(Enum):
    """Controller operations a method white list can name."""

    CREATE = "create"
    INDEX = "index"
    SHOW = "show"
    UPDATE = "update"
    DELETE = "delete"

    @classmethod
    def parse(cls, name: str) -> "Method":
        """Look up a method by its (case-insensitive) name.

        Raises:
            ValueError: If the name is not a controller method
        """
        try:
            return cls(name.lower())
        except ValueError:
            raise ValueError(
                f"Unknown method '{name}'. Expected one of: {', '.join(m.value for m in cls)}"
            ) from None
