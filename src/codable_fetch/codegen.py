"""
Generate pydantic model source from a JSON sample.

Nested objects become their own classes, named after the key that holds them.
Arrays are merged element by element so a key missing from some elements, or
``null`` in any of them, becomes ``Optional[...] = None``. Keys that are not
valid snake_case identifiers get a Python attribute name plus an alias.
Every model is declared with ``strict=True`` so mistyped values fail validation.

Example::

    source = generate_models({"id": 1, "userName": "bret"}, root_name="User")
"""

from __future__ import annotations

import json
import keyword
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from .core.logging import get_logger
from .fetch.errors import DecodeError

LOGGER = get_logger(__name__)

NULL = "None"
ANY = "Any"

# Attributes that would shadow BaseModel members.
_RESERVED_ATTRIBUTES = frozenset({"copy", "dict", "json", "schema", "construct", "validate", "fields", "model_config"})


@dataclass(eq=False, slots=True)
class _Object:
    hint: str
    fields: Dict[str, "_Type"] = field(default_factory=dict)


@dataclass(eq=False, slots=True)
class _List:
    item: "_Type" = NULL


@dataclass(eq=False, slots=True)
class _Optional:
    inner: "_Type"


_Type = Union[str, _Object, _List, _Optional]


def _strip_optional(value: _Type) -> Tuple[bool, _Type]:
    if isinstance(value, _Optional):
        return True, value.inner
    return False, value


def _merge(left: _Type, right: _Type) -> _Type:
    left_optional, left = _strip_optional(left)
    right_optional, right = _strip_optional(right)
    optional = left_optional or right_optional
    if left == NULL:
        base, optional = right, True
    elif right == NULL:
        base, optional = left, True
    elif isinstance(left, _Object) and isinstance(right, _Object):
        base = _merge_objects(left, right)
    elif isinstance(left, _List) and isinstance(right, _List):
        base = _List(_merge(left.item, right.item))
    elif isinstance(left, str) and left == right:
        base = left
    elif {left, right} == {"int", "float"}:
        base = "float"
    else:
        base = ANY
    if optional and base != NULL:
        return _Optional(base)
    return base


def _merge_objects(left: _Object, right: _Object) -> _Object:
    merged = _Object(left.hint)
    for key, value in left.fields.items():
        if key in right.fields:
            merged.fields[key] = _merge(value, right.fields[key])
        else:
            merged.fields[key] = _merge(value, NULL)
    for key, value in right.fields.items():
        if key not in left.fields:
            merged.fields[key] = _merge(value, NULL)
    return merged


def _infer(value: Any, hint: str) -> _Type:
    if value is None:
        return NULL
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "int"
    if isinstance(value, float):
        return "float"
    if isinstance(value, str):
        return "str"
    if isinstance(value, list):
        item_hint = _singular(hint)
        item: _Type = NULL
        for index, element in enumerate(value):
            inferred = _infer(element, item_hint)
            item = inferred if index == 0 else _merge(item, inferred)
        return _List(item)
    if isinstance(value, dict):
        obj = _Object(hint)
        for key, child in value.items():
            obj.fields[str(key)] = _infer(child, class_name(str(key)))
        return obj
    return ANY


def _split_words(text: str) -> List[str]:
    spaced = re.sub(r"(?<=[a-z0-9])(?=[A-Z])", " ", text)
    return [word for word in re.split(r"[^0-9A-Za-z]+", spaced) if word]


def class_name(key: str) -> str:
    """PascalCase class name for a JSON key."""

    name = "".join(word[:1].upper() + word[1:] for word in _split_words(key))
    if not name:
        return "Model"
    if name[0].isdigit():
        return f"Model{name}"
    return name


def attribute_name(key: str) -> str:
    """snake_case attribute name for a JSON key."""

    name = "_".join(word.lower() for word in _split_words(key)) or "field"
    if name[0].isdigit():
        name = f"field_{name}"
    if keyword.iskeyword(name) or name in _RESERVED_ATTRIBUTES or name.startswith("model_"):
        name = f"{name}_"
    return name


def _singular(name: str) -> str:
    if name.endswith("ies") and len(name) > 4:
        return f"{name[:-3]}y"
    if name.endswith("s") and not name.endswith("ss") and len(name) > 3:
        return name[:-1]
    return name


@dataclass(slots=True)
class _Renderer:
    blocks: List[str] = field(default_factory=list)
    names: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    bodies: Dict[Tuple[str, ...], str] = field(default_factory=dict)
    imports: set[str] = field(default_factory=set)

    def annotation(self, value: _Type) -> str:
        if isinstance(value, _Optional):
            self.imports.add("Optional")
            return f"Optional[{self.annotation(value.inner)}]"
        if isinstance(value, _List):
            return f"list[{self.annotation(value.item)}]"
        if isinstance(value, _Object):
            return self.emit(value)
        if value in (NULL, ANY):
            self.imports.add("Any")
            return "Any"
        return value

    def emit(self, obj: _Object, name: Optional[str] = None) -> str:
        lines: List[str] = []
        used: set[str] = set()
        aliased = False
        for key, value in obj.fields.items():
            attribute = attribute_name(key)
            base, suffix = attribute, 2
            while attribute in used:
                attribute = f"{base}_{suffix}"
                suffix += 1
            used.add(attribute)
            optional = isinstance(value, _Optional) or value == NULL
            annotation = self.annotation(value)
            if optional and value == NULL:
                self.imports.add("Optional")
                annotation = f"Optional[{annotation}]"
            if attribute != key:
                aliased = True
                self.imports.add("Field")
                default = f' = Field(default=None, alias="{key}")' if optional else f' = Field(alias="{key}")'
            else:
                default = " = None" if optional else ""
            lines.append(f"    {attribute}: {annotation}{default}")
        self.imports.add("ConfigDict")
        options = "populate_by_name=True, strict=True" if aliased else "strict=True"
        lines.insert(0, f"    model_config = ConfigDict({options})\n")
        body = tuple(lines)
        if name is None and body in self.bodies:
            return self.bodies[body]
        resolved = name if name is not None else self._unique(obj.hint)
        self.names[resolved] = body
        self.bodies.setdefault(body, resolved)
        self.blocks.append(f"class {resolved}(BaseModel):\n" + "\n".join(lines))
        return resolved

    def _unique(self, name: str) -> str:
        candidate, suffix = name, 2
        while candidate in self.names:
            candidate = f"{name}{suffix}"
            suffix += 1
        return candidate

    def header(self) -> str:
        typing_names = sorted(self.imports & {"Any", "Optional"})
        pydantic_names = ["BaseModel", *sorted(self.imports & {"ConfigDict", "Field"})]
        lines = ["from __future__ import annotations", ""]
        if typing_names:
            lines.append(f"from typing import {', '.join(typing_names)}")
            lines.append("")
        lines.append(f"from pydantic import {', '.join(pydantic_names)}")
        return "\n".join(lines)


def generate_models(sample: Any, root_name: str = "Root") -> str:
    """
    Return Python source defining pydantic models for ``sample``.

    Parameters
    ----------
    sample:
        Parsed JSON: an object, or an array of objects.
    root_name:
        Class name of the top-level object. For arrays a ``<root_name>List``
        alias is added as well.

    Raises
    ------
    ValueError
        If the sample is neither an object nor an array of objects.
    """

    root_name = class_name(root_name)
    inferred = _infer(sample, root_name)
    is_list = isinstance(inferred, _List)
    target = _strip_optional(inferred.item)[1] if isinstance(inferred, _List) else inferred
    if not isinstance(target, _Object):
        raise ValueError("Model generation needs a JSON object or an array of objects")

    renderer = _Renderer()
    renderer.names[root_name] = ()
    renderer.emit(target, name=root_name)
    source = renderer.header() + "\n\n\n" + "\n\n\n".join(renderer.blocks) + "\n"
    if is_list:
        source += f"\n\n{root_name}List = list[{root_name}]\n"
    LOGGER.debug("Models generated", extra={"shape": root_name, "count": len(renderer.blocks)})
    return source


def generate_models_from_json(text: str | bytes, root_name: str = "Root") -> str:
    """Parse ``text`` as JSON and pass it to :func:`generate_models`."""

    try:
        sample = json.loads(text)
    except json.JSONDecodeError as exc:
        raise DecodeError(f"Sample is not valid JSON: {exc}") from exc
    return generate_models(sample, root_name=root_name)
