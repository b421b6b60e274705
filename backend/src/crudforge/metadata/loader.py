"""Load and resolve model and controller metadata from YAML files."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from crudforge.core.types import get_value_kind
from crudforge.hooks.types import HOOK_POINTS
from crudforge.models.base import PRIMARY_KEY, Field, ModelConfiguration
from crudforge.rest.methods import Method

logger = logging.getLogger(__name__)

SHAPES = ("plain", "oneToOne", "oneToMany", "manyToMany")


class MetadataError(ValueError):
    """Metadata is structurally invalid."""


@dataclass
class FieldDefinition:
    name: str
    type: str
    nullable: bool = False
    primary_key: bool = False
    insertable: bool = True
    updatable: bool = True
    skip_validation: bool = False
    unique: bool = False
    references: str | None = None
    check: str | None = None


@dataclass
class ModelDefinition:
    name: str
    fields: list[FieldDefinition]
    unique_together: list[tuple[str, ...]] = field(default_factory=list)
    source: Path | None = None

    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    def configuration(self) -> ModelConfiguration:
        """Build the runtime configuration for this model."""
        return ModelConfiguration(
            table_name=self.name,
            fields=[
                Field(
                    name=f.name,
                    kind=get_value_kind(f.type, nullable=f.nullable),
                    insertable=f.insertable and not f.primary_key,
                    updatable=f.updatable and not f.primary_key,
                    skip_validation=f.skip_validation,
                    primary_key=f.primary_key,
                    unique=f.unique,
                    references=f.references,
                    check=f.check,
                )
                for f in self.fields
            ],
            unique_together=list(self.unique_together),
        )


@dataclass
class ControllerDefinition:
    """A controller described in metadata.

    ``base`` is the routed model for a plain controller and the parent
    model for every relational shape.
    """

    name: str
    shape: str
    base: str
    nested: str | None = None
    relation: str | None = None
    nested_singular: str | None = None
    foreign_reference: str | None = None
    base_foreign_reference: str | None = None
    nested_foreign_reference: str | None = None
    methods: list[Method] | None = None
    hooks: dict[str, str] = field(default_factory=dict)
    source: Path | None = None


def _snake_case(name: str) -> str:
    result = []
    for char in name:
        if char.isupper():
            result.append("_")
            result.append(char.lower())
        else:
            result.append(char)
    return "".join(result)


class MetadataLoader:
    """Loads block, model and controller definitions from YAML files.

    Layout:
        <path>/blocks/*.yaml       reusable field sets
        <path>/models/*.yaml       tables
        <path>/controllers/*.yaml  routed controllers
    """

    def __init__(self, metadata_path: Path):
        self.metadata_path = Path(metadata_path)
        self.models: dict[str, ModelDefinition] = {}
        self.controllers: dict[str, ControllerDefinition] = {}
        self.blocks: dict[str, list[dict]] = {}

    def load_all(self) -> None:
        """Load all blocks, models and controllers, then cross-check them.

        Raises:
            MetadataError: If any definition is invalid
        """
        self._load_blocks()
        self._load_models()
        self._load_controllers()
        self._check_references()
        logger.info(
            "Loaded %d model(s) and %d controller(s) from %s",
            len(self.models),
            len(self.controllers),
            self.metadata_path,
        )

    def _read(self, directory: str) -> list[tuple[Path, dict]]:
        path = self.metadata_path / directory
        if not path.exists():
            return []

        documents = []
        for yaml_file in sorted(path.glob("*.yaml")):
            with open(yaml_file) as f:
                try:
                    data = yaml.safe_load(f)
                except yaml.YAMLError as e:
                    raise MetadataError(f"{yaml_file}: invalid YAML: {e}") from e
            if data:
                if not isinstance(data, dict):
                    raise MetadataError(f"{yaml_file}: expected a mapping at the top level")
                documents.append((yaml_file, data))
        return documents

    def _load_blocks(self) -> None:
        """Load reusable block definitions."""
        for _, data in self._read("blocks"):
            if "block" in data:
                self.blocks[data["block"]] = data.get("fields", [])

    def _load_models(self) -> None:
        """Load model definitions."""
        for yaml_file, data in self._read("models"):
            if "model" not in data:
                continue
            model = self._resolve_model(yaml_file, data)
            if model.name in self.models:
                raise MetadataError(f"{yaml_file}: duplicate model '{model.name}'")
            self.models[model.name] = model

    def _load_controllers(self) -> None:
        """Load controller definitions."""
        for yaml_file, data in self._read("controllers"):
            if "controller" not in data:
                continue
            controller = self._resolve_controller(yaml_file, data)
            if controller.name in self.controllers:
                raise MetadataError(f"{yaml_file}: duplicate controller '{controller.name}'")
            self.controllers[controller.name] = controller

    def _resolve_model(self, source: Path, data: dict) -> ModelDefinition:
        """Resolve a model definition, expanding blocks."""
        name = data["model"]

        # Collect fields
        all_fields: list[dict] = []

        # Expand included blocks
        for include in data.get("includes", []):
            block_name = include["block"]
            if block_name not in self.blocks:
                raise MetadataError(f"{source}: unknown block '{block_name}'")
            all_fields.extend(dict(f) for f in self.blocks[block_name])

        # Add model's own fields
        all_fields.extend(data.get("fields", []))

        fields = [self._resolve_field(source, f) for f in all_fields]

        names = [f.name for f in fields]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise MetadataError(f"{source}: duplicate field(s) {', '.join(duplicates)}")

        primary = [f for f in fields if f.primary_key]
        if len(primary) != 1 or primary[0].name != PRIMARY_KEY or primary[0].type != "int":
            raise MetadataError(
                f"{source}: model '{name}' must declare exactly one primary key, "
                f"an int field named '{PRIMARY_KEY}'"
            )

        unique_together = []
        for group in data.get("uniqueTogether", []):
            unknown = [n for n in group if n not in names]
            if unknown:
                raise MetadataError(
                    f"{source}: uniqueTogether names unknown field(s) {', '.join(unknown)}"
                )
            unique_together.append(tuple(group))

        return ModelDefinition(
            name=name,
            fields=fields,
            unique_together=unique_together,
            source=source,
        )

    def _resolve_field(self, source: Path, data: dict) -> FieldDefinition:
        """Convert field dict to FieldDefinition."""
        if "name" not in data:
            raise MetadataError(f"{source}: field without a name")
        name = data["name"]
        field_type = data.get("type", "string")
        nullable = data.get("nullable", False)

        try:
            get_value_kind(field_type, nullable=nullable)
        except ValueError as e:
            raise MetadataError(f"{source}: field '{name}': {e}") from e

        return FieldDefinition(
            name=name,
            type=field_type,
            nullable=nullable,
            primary_key=data.get("primaryKey", False),
            insertable=data.get("insertable", True),
            updatable=data.get("updatable", True),
            skip_validation=data.get("skipValidation", False),
            unique=data.get("unique", False),
            references=data.get("references"),
            check=data.get("check"),
        )

    def _resolve_controller(self, source: Path, data: dict) -> ControllerDefinition:
        """Convert controller dict to ControllerDefinition."""
        name = data["controller"]
        shape = data.get("shape", "plain")
        if shape not in SHAPES:
            raise MetadataError(
                f"{source}: unknown shape '{shape}'. Expected one of: {', '.join(SHAPES)}"
            )

        base = data.get("model") if shape == "plain" else data.get("base")
        if not base:
            key = "model" if shape == "plain" else "base"
            raise MetadataError(f"{source}: controller '{name}' needs '{key}'")

        methods = None
        if "methods" in data:
            try:
                methods = [Method.parse(m) for m in data["methods"]]
            except ValueError as e:
                raise MetadataError(f"{source}: {e}") from e

        hooks: dict[str, str] = {}
        for point, hook_name in (data.get("hooks") or {}).items():
            hook_point = _snake_case(point)
            if hook_point not in HOOK_POINTS:
                raise MetadataError(f"{source}: unknown hook point '{point}'")
            hooks[hook_point] = hook_name

        return ControllerDefinition(
            name=name,
            shape=shape,
            base=base,
            nested=data.get("nested"),
            relation=data.get("relation"),
            nested_singular=data.get("nestedSingular"),
            foreign_reference=data.get("foreignReference"),
            base_foreign_reference=data.get("baseForeignReference"),
            nested_foreign_reference=data.get("nestedForeignReference"),
            methods=methods,
            hooks=hooks,
            source=source,
        )

    def _check_references(self) -> None:
        """Check every cross-reference between models and controllers."""
        for model in self.models.values():
            for f in model.fields:
                if f.references and f.references not in self.models:
                    raise MetadataError(
                        f"{model.source}: field '{f.name}' references unknown model "
                        f"'{f.references}'"
                    )

        for controller in self.controllers.values():
            self._check_controller(controller)

    def _require_model(self, controller: ControllerDefinition, name: str | None, key: str) -> ModelDefinition:
        if not name:
            raise MetadataError(f"{controller.source}: controller '{controller.name}' needs '{key}'")
        if name not in self.models:
            raise MetadataError(
                f"{controller.source}: controller '{controller.name}' references unknown "
                f"model '{name}'"
            )
        return self.models[name]

    def _require_field(
        self, controller: ControllerDefinition, model: ModelDefinition, name: str | None, key: str
    ) -> None:
        if not name:
            raise MetadataError(f"{controller.source}: controller '{controller.name}' needs '{key}'")
        if name not in model.field_names():
            raise MetadataError(
                f"{controller.source}: unknown foreign reference '{name}' "
                f"(model '{model.name}' has no such field)"
            )

    def _check_controller(self, controller: ControllerDefinition) -> None:
        key = "model" if controller.shape == "plain" else "base"
        base = self._require_model(controller, controller.base, key)
        if controller.shape == "plain":
            return

        nested = self._require_model(controller, controller.nested, "nested")
        if controller.shape == "oneToOne":
            if not controller.nested_singular:
                raise MetadataError(
                    f"{controller.source}: controller '{controller.name}' needs 'nestedSingular'"
                )
            self._require_field(controller, base, controller.foreign_reference, "foreignReference")
        elif controller.shape == "oneToMany":
            self._require_field(controller, nested, controller.foreign_reference, "foreignReference")
        elif controller.shape == "manyToMany":
            relation = self._require_model(controller, controller.relation, "relation")
            self._require_field(
                controller, relation, controller.base_foreign_reference, "baseForeignReference"
            )
            self._require_field(
                controller, relation, controller.nested_foreign_reference, "nestedForeignReference"
            )

    def get_model(self, name: str) -> ModelDefinition | None:
        """Get a resolved model by name."""
        return self.models.get(name)

    def list_models(self) -> list[str]:
        """List all model names."""
        return list(self.models.keys())

    def get_controller(self, name: str) -> ControllerDefinition | None:
        return self.controllers.get(name)

    def list_controllers(self) -> list[str]:
        return list(self.controllers.keys())

    def ordered_models(self) -> list[ModelDefinition]:
        """Models ordered so referenced tables come before referencing ones."""
        ordered: list[ModelDefinition] = []
        visiting: set[str] = set()

        def visit(model: ModelDefinition) -> None:
            if model.name in visiting:
                return
            visiting.add(model.name)
            for f in model.fields:
                if f.references and f.references != model.name:
                    visit(self.models[f.references])
            ordered.append(model)

        for model in self.models.values():
            visit(model)
        return ordered

    def describe(self) -> dict[str, Any]:
        """Summary of the loaded metadata."""
        return {
            "models": {name: len(m.fields) for name, m in self.models.items()},
            "controllers": {name: c.shape for name, c in self.controllers.items()},
        }
