# Copyright (c) 2022-2025, The Isaac Lab Project Developers (https://github.com/isaac-sim/IsaacLab/blob/main/CONTRIBUTORS.md).
# All rights reserved.
#
# SPDX-License-Identifier: BSD-3-Clause

"""Sub-module that provides a wrapper around the ``dataclasses`` module for sensor configurations."""

import inspect
import types
from collections.abc import Callable
from copy import deepcopy
from dataclasses import MISSING, Field, dataclass, field, replace
from typing import Any, ClassVar

_CONFIGCLASS_METHODS = ["copy", "validate"]
"""List of class methods added at runtime to dataclass."""

"""
Wrapper around dataclass.
"""


def __dataclass_transform__():
    """Add annotations decorator for PyLance."""
    return lambda a: a


@__dataclass_transform__()
def configclass(cls, **kwargs):
    """Wrapper around `dataclass` functionality to add extra checks and utilities.

    Plain dataclasses need a type annotation for every member and an explicit
    :meth:`field(default_factory=...)` for every mutable default, which makes nested
    sensor configurations verbose. This decorator infers missing annotations from the default
    values, turns every default into a factory so instances never share state, and adds helpers
    for copying and validating the configuration.

    Usage:

    .. code-block:: python

        from dataclasses import MISSING

        from rigid_imu.utils import configclass


        @configclass
        class MountCfg:
            pos = (0.0, 0.0, 0.1)  # annotation inferred from the default
            rot: tuple[float, float, float, float] = (1.0, 0.0, 0.0, 0.0)


        @configclass
        class SensorCfg:
            parent_name: str = MISSING
            update_period: float = 0.0
            mount: MountCfg = MountCfg()

        cfg = SensorCfg(parent_name="robot::base")
        cfg.validate()
        cfg_copy = cfg.copy()

    Args:
        cls: The class to wrap around.
        **kwargs: Additional arguments to pass to :func:`dataclass`.

    Returns:
        The wrapped class.
    """
    # add type annotations
    _add_annotation_types(cls)
    # add field factory
    _process_mutable_types(cls)
    # copy mutable members
    # note: we check if user defined __post_init__ function exists and augment it with our own
    if hasattr(cls, "__post_init__"):
        setattr(cls, "__post_init__", _combined_function(cls.__post_init__, _custom_post_init))
    else:
        setattr(cls, "__post_init__", _custom_post_init)
    # add helper functions
    setattr(cls, "copy", _copy_class)
    setattr(cls, "validate", _validate)
    # wrap around dataclass
    cls = dataclass(cls, **kwargs)
    # return wrapped class
    return cls


"""
Copy operations.
"""


def _copy_class(obj: object) -> object:
    """Return a new object with the same fields as the original."""
    return replace(obj)


"""
Private helper functions.
"""


def _add_annotation_types(cls):
    """Add annotations to all elements in the dataclass.

    Members without an annotation get one deduced from their default value. Members defaulting
    to :obj:`MISSING` cannot be deduced and raise a :class:`TypeError`.
    """
    hints = {}
    # we add annotations from base classes first
    for base in reversed(cls.__mro__):
        if base is object:
            continue
        ann = base.__dict__.get("__annotations__", {})
        hints.update(ann)
        # Note: Do not change this to dir(base) since it orders the members alphabetically.
        for key in base.__dict__:
            value = getattr(base, key)
            if _skippable_class_member(key, value, hints):
                continue
            if not isinstance(value, type):
                if key not in hints:
                    if value is MISSING:
                        raise TypeError(
                            f"Missing type annotation for '{key}' in class '{cls.__name__}'."
                            " Please add a type annotation or set a default value."
                        )
                    hints[key] = type(value)
            elif key != value.__name__:
                # note: nested configclass definitions carry the same name as the member, skip those
                hints[key] = f"type[{value.__name__}]"

    # Note: `cls.__dict__.get("__annotations__", {})` is different from `cls.__annotations__`
    #   because of inheritance.
    cls.__annotations__ = hints


def _validate(obj: object, prefix: str = "") -> list[str]:
    """Check the validity of configclass object.

    A valid configclass object contains no MISSING entries.

    Args:
        obj: The object to check.
        prefix: The prefix to add to the missing fields. Defaults to ''.

    Returns:
        A list of missing fields.

    Raises:
        TypeError: When the object is not a valid configuration object.
    """
    missing_fields = []

    if type(obj) is type(MISSING):
        missing_fields.append(prefix)
        return missing_fields
    elif isinstance(obj, (list, tuple)):
        for index, item in enumerate(obj):
            current_path = f"{prefix}[{index}]"
            missing_fields.extend(_validate(item, prefix=current_path))
        return missing_fields
    elif isinstance(obj, dict):
        obj_dict = obj
    elif hasattr(obj, "__dict__") and not isinstance(obj, type):
        obj_dict = obj.__dict__
    else:
        return missing_fields

    for key, value in obj_dict.items():
        # disregard builtin attributes
        if key.startswith("__"):
            continue
        current_path = f"{prefix}.{key}" if prefix else key
        missing_fields.extend(_validate(value, prefix=current_path))

    # raise an error only once at the top-level call
    if prefix == "" and missing_fields:
        formatted_message = "\n".join(f"  - {field}" for field in missing_fields)
        raise TypeError(
            f"Missing values detected in object {obj.__class__.__name__} for the following"
            f" fields:\n{formatted_message}\n"
        )
    return missing_fields


def _process_mutable_types(cls):
    """Initialize all elements through :obj:`dataclasses.Field` default factories.

    Nested configuration objects are mutable but are not caught by the dataclass check for
    list, set or dict defaults. Wrapping every default in a factory gives each instance its
    own copy.
    """
    # note: Need to set this up in the same order as annotations. Otherwise, it
    #   complains about missing positional arguments.
    ann = cls.__dict__.get("__annotations__", {})

    class_members = {}
    for base in reversed(cls.__mro__):
        if base is object:
            continue
        for key in base.__dict__:
            f = getattr(base, key)
            if _skippable_class_member(key, f):
                continue
            # store class member if it is not a type or if it is already present in annotations
            if not isinstance(f, type) or key in ann:
                class_members[key] = f
        # fields of a dataclass base were removed from its class members, add them back
        for key, f in base.__dict__.get("__dataclass_fields__", {}).items():
            if not isinstance(f, type):
                class_members[key] = f

    if len(class_members) != len(ann):
        raise ValueError(
            f"In class '{cls.__name__}', number of annotations ({len(ann)}) does not match number of class members"
            f" ({len(class_members)}). Please check that all class members have type annotations and/or a default"
            " value. If you don't want to specify a default value, please use the literal `dataclasses.MISSING`."
        )
    for key in ann:
        value = class_members.get(key, MISSING)
        # ClassVar members cannot use default_factory
        origin = getattr(ann[key], "__origin__", None)
        if origin is ClassVar:
            continue
        if isinstance(value, Field):
            setattr(cls, key, value)
        elif not isinstance(value, type):
            value = field(default_factory=_return_f(value))
            setattr(cls, key, value)


def _custom_post_init(obj):
    """Deepcopy all elements to avoid shared memory issues for mutable objects."""
    for key in dir(obj):
        if key.startswith("__"):
            continue
        value = getattr(obj, key)
        ann = obj.__class__.__dict__.get(key)
        if not callable(value) and not isinstance(ann, property):
            setattr(obj, key, deepcopy(value))


def _combined_function(f1: Callable, f2: Callable) -> Callable:
    """Combine two functions into one."""

    def _combined(*args, **kwargs):
        f1(*args, **kwargs)
        f2(*args, **kwargs)

    return _combined


"""
Helper functions
"""


def _skippable_class_member(key: str, value: Any, hints: dict | None = None) -> bool:
    """Check if the class member should be skipped in configclass processing.

    The following members are skipped:

    * Dunder members.
    * Manually-added special class functions: From :obj:`_CONFIGCLASS_METHODS`.
    * Members that are already present in the type annotations.
    * Functions bounded to class object or class.
    * Properties bounded to class object.
    """
    if key.startswith("__"):
        return True
    if key in _CONFIGCLASS_METHODS:
        return True
    if hints is not None and key in hints:
        return True
    if callable(value):
        # FIXME: This doesn't yet work for static methods because they are essentially seen as function types.
        if isinstance(value, types.MethodType):
            return True
        signature = inspect.signature(value)
        if "self" in signature.parameters or "cls" in signature.parameters:
            return True
    if isinstance(value, property):
        return True
    return False


def _return_f(f: Any) -> Callable[[], Any]:
    """Returns default factory function for creating mutable/immutable variables."""

    def _wrap():
        if isinstance(f, Field):
            if f.default_factory is MISSING:
                return deepcopy(f.default)
            else:
                return f.default_factory
        else:
            return deepcopy(f)

    return _wrap
