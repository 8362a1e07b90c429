"""Mapper configuration checks."""

import pytest
from sqlalchemy.orm import configure_mappers

from pokerboard.models import Base


def _relationships():
    configure_mappers()
    return [
        (mapper.class_.__name__, rel.key, rel.lazy)
        for mapper in Base.registry.mappers
        for rel in mapper.relationships
    ]


def test_models_have_relationships():
    assert len(_relationships()) >= 17


@pytest.mark.parametrize("model,key,lazy", _relationships())
def test_relationships_never_lazy_load(model, key, lazy):
    # Async sessions cannot lazy load; every access must be eager-loaded
    # or resolvable from the identity map.
    assert lazy == "raise_on_sql", f"{model}.{key}"
