"""Build controllers from loaded metadata."""

from crudforge.hooks import LifecycleHooks
from crudforge.metadata.loader import ControllerDefinition, MetadataError, MetadataLoader
from crudforge.models.base import ModelFactory, build_model
from crudforge.persistence.adapter import PersistenceAdapter
from crudforge.rest import (
    BaseController,
    Controller,
    ManyToManyController,
    OneToManyController,
    OneToOneController,
)


def build_factories(
    loader: MetadataLoader, adapter: PersistenceAdapter
) -> dict[str, ModelFactory]:
    """One model factory per loaded model, keyed by table name."""
    return {
        name: build_model(model.configuration(), adapter)
        for name, model in loader.models.items()
    }


def _lifecycle_hooks(definition: ControllerDefinition) -> LifecycleHooks:
    try:
        return LifecycleHooks.from_names(definition.hooks)
    except ValueError as e:
        raise MetadataError(f"{definition.source}: {e}") from e


def build_controller(
    definition: ControllerDefinition, factories: dict[str, ModelFactory]
) -> Controller:
    """Instantiate the controller a definition describes.

    Raises:
        MetadataError: If a hook name is not registered
    """
    hooks = _lifecycle_hooks(definition)
    base = factories[definition.base]

    if definition.shape == "oneToOne":
        return OneToOneController(
            get_base_model=base,
            get_nested_model=factories[definition.nested],
            nested_model_name_singular=definition.nested_singular,
            foreign_reference=definition.foreign_reference,
            lifecycle_hooks=hooks,
            method_white_list=definition.methods,
        )
    if definition.shape == "oneToMany":
        return OneToManyController(
            get_base_model=base,
            get_nested_model=factories[definition.nested],
            foreign_reference=definition.foreign_reference,
            lifecycle_hooks=hooks,
            method_white_list=definition.methods,
        )
    if definition.shape == "manyToMany":
        return ManyToManyController(
            get_base_model=base,
            get_nested_model=factories[definition.nested],
            get_relation_model=factories[definition.relation],
            base_model_foreign_reference=definition.base_foreign_reference,
            nested_model_foreign_reference=definition.nested_foreign_reference,
            lifecycle_hooks=hooks,
            method_white_list=definition.methods,
        )
    return BaseController(
        get_model=base,
        lifecycle_hooks=hooks,
        method_white_list=definition.methods,
    )


def build_controllers(loader: MetadataLoader, adapter: PersistenceAdapter) -> list[Controller]:
    """Instantiate every controller in ``loader``, in name order."""
    factories = build_factories(loader, adapter)
    return [
        build_controller(loader.controllers[name], factories)
        for name in sorted(loader.controllers)
    ]
