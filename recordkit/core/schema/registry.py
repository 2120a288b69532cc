"""
Definition registry for looking record definitions up by name.

Populated once before validation runs; freeze() makes it read-only.
"""

from collections.abc import Iterator

from recordkit.core.errors import DefinitionError

from .definition import RecordDefinition


class DefinitionRegistry:
    """
    Name -> RecordDefinition store.

    Nested definitions are held by reference inside their parent, so the
    registry is only needed to find top-level records by name (for example
    records loaded from YAML).
    """

    def __init__(self):
        self._definitions: dict[str, RecordDefinition] = {}
        self._frozen = False

    def register(self, definition: RecordDefinition) -> RecordDefinition:
        """
        Add a definition.

        Raises:
            DefinitionError: If the registry is frozen or the name is taken
        """
        if self._frozen:
            raise DefinitionError("Registry is frozen", record=definition.name)
        if definition.name in self._definitions:
            raise DefinitionError("A record with this name is already registered", record=definition.name)
        self._definitions[definition.name] = definition
        return definition

    def get(self, name: str) -> RecordDefinition:
        """
        Raises:
            KeyError: If no record has this name
        """
        try:
            return self._definitions[name]
        except KeyError:
            raise KeyError(f"Unknown record: {name}") from None

    def freeze(self) -> "DefinitionRegistry":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def names(self) -> list[str]:
        return list(self._definitions)

    def __contains__(self, name: object) -> bool:
        return name in self._definitions

    def __iter__(self) -> Iterator[RecordDefinition]:
        return iter(self._definitions.values())

    def __len__(self) -> int:
        return len(self._definitions)
