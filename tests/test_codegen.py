from __future__ import annotations

import sys
import types

import pytest
from pydantic import ValidationError

from codable_fetch.codegen import attribute_name, class_name, generate_models, generate_models_from_json
from codable_fetch.fetch import DecodeError


def _load_module(source: str, monkeypatch) -> types.ModuleType:
    module = types.ModuleType("generated_models")
    monkeypatch.setitem(sys.modules, "generated_models", module)
    exec(compile(source, "generated_models.py", "exec"), module.__dict__)
    return module


def test_generates_nested_user_models(user_payload, monkeypatch):
    source = generate_models(user_payload, root_name="User")

    assert "class Geo(BaseModel):" in source
    assert "class Address(BaseModel):" in source
    assert "    geo: Geo" in source
    assert '    catch_phrase: str = Field(alias="catchPhrase")' in source
    assert source.index("class Geo") < source.index("class Address") < source.index("class User")

    module = _load_module(source, monkeypatch)
    user = module.User.model_validate(user_payload)
    assert user.address.geo.lng == "81.1496"
    assert user.company.catch_phrase.startswith("Multi-layered")


def test_array_samples_merge_optional_keys(monkeypatch):
    sample = [
        {"id": 1, "title": "a", "score": 1},
        {"id": 2, "title": None, "score": 2.5, "tags": ["x"]},
    ]

    source = generate_models(sample, root_name="posts")

    assert "class Posts(BaseModel):" in source
    assert "    id: int" in source
    assert "    title: Optional[str] = None" in source
    assert "    score: float" in source
    assert "    tags: Optional[list[str]] = None" in source
    assert "PostsList = list[Posts]" in source
    module = _load_module(source, monkeypatch)
    assert module.Posts.model_validate({"id": 3, "score": 1}).title is None


def test_identical_nested_shapes_share_a_class():
    sample = {"home": {"lat": "1", "lng": "2"}, "work": {"lat": "3", "lng": "4"}}

    source = generate_models(sample)

    assert source.count("(BaseModel):") == 2
    assert "    work: Home" in source


def test_name_collisions_get_suffixes():
    source = generate_models({"item": {"item": {"id": 1}}}, root_name="Item")

    assert "class Item(BaseModel):" in source
    assert "class Item2(BaseModel):" in source


def test_unknown_and_mixed_values_fall_back_to_any():
    source = generate_models({"value": None, "mixed": [1, "a"], "empty": []})

    assert "    value: Optional[Any] = None" in source
    assert "    mixed: list[Any]" in source
    assert "    empty: list[Any]" in source
    assert "from typing import Any, Optional" in source


@pytest.mark.parametrize(
    ("key", "expected"),
    [("userId", "user_id"), ("class", "class_"), ("2fa", "field_2fa"), ("first-name", "first_name"), ("json", "json_")],
)
def test_attribute_names(key, expected):
    assert attribute_name(key) == expected


def test_class_names():
    assert class_name("company_info") == "CompanyInfo"
    assert class_name("geoPoint") == "GeoPoint"
    assert class_name("") == "Model"


def test_rejects_scalar_samples():
    with pytest.raises(ValueError):
        generate_models(42)


def test_malformed_json_raises_decode_error():
    with pytest.raises(DecodeError):
        generate_models_from_json("{oops", root_name="User")


def test_generated_models_reject_mistyped_values(monkeypatch):
    source = generate_models({"id": 1, "userName": "bret"}, root_name="Account")

    assert "    model_config = ConfigDict(populate_by_name=True, strict=True)" in source
    module = _load_module(source, monkeypatch)
    assert module.Account.model_validate_json('{"id": 1, "userName": "bret"}').user_name == "bret"
    with pytest.raises(ValidationError):
        module.Account.model_validate_json('{"id": "1", "userName": "bret"}')
