# SPDX-License-Identifier: Apache-2.0
import json
import types

import pytest

from hookpatch import ModuleResolver, SysModulesIndex


class FakeIndex:

    def __init__(self, result):
        self.result = result
        self.queries = []

    def find_by_props(self, props):
        self.queries.append(list(props))
        return self.result


def test_concrete_objects_pass_through(module) -> None:
    resolver = ModuleResolver()

    def func():
        pass

    for descriptor in (module, func, object, {"a": 1}):
        assert resolver.resolve(descriptor) is descriptor


@pytest.mark.parametrize("descriptor", [None, 3, 2.5, True, b"json"])
def test_unsupported_descriptors(descriptor) -> None:
    assert ModuleResolver().resolve(descriptor) is None


def test_label_uses_supplied_namespace(module) -> None:
    resolver = ModuleResolver(namespace={"fake": module})
    assert resolver.resolve("fake") is module
    assert resolver.resolve("json") is None


def test_label_defaults_to_sys_modules() -> None:
    assert ModuleResolver().resolve("json") is json
    assert ModuleResolver().resolve("surely_not_a_loaded_module") is None


def test_label_with_attribute_path() -> None:
    resolver = ModuleResolver()
    assert resolver.resolve("json:JSONDecoder") is json.JSONDecoder
    assert resolver.resolve("json:JSONDecoder.decode") is json.JSONDecoder.decode
    assert resolver.resolve("json:NoSuchThing") is None


def test_property_list_goes_to_module_index(module) -> None:
    index = FakeIndex(module)
    resolver = ModuleResolver(module_index=index)
    assert resolver.resolve(["add", "greet"]) is module
    assert resolver.resolve(("add",)) is module
    assert index.queries == [["add", "greet"], ["add"]]


def test_property_list_without_match() -> None:
    resolver = ModuleResolver(module_index=FakeIndex(None))
    assert resolver.resolve(["add"]) is None


def test_property_list_must_hold_names() -> None:
    index = FakeIndex(object())
    assert ModuleResolver(module_index=index).resolve([1, 2]) is None
    assert index.queries == []


def test_sys_modules_index_finds_module_and_members() -> None:
    first = types.ModuleType("first")
    first.alpha = lambda: None
    holder = types.SimpleNamespace(beta=1, gamma=2)
    second = types.ModuleType("second")
    second.holder = holder
    index = SysModulesIndex({"first": first, "second": second, "empty": None})

    assert index.find_by_props(["alpha"]) is first
    assert index.find_by_props(["beta", "gamma"]) is holder
    assert index.find_by_props(["beta", "delta"]) is None
    assert index.find_by_props([]) is None


def test_sys_modules_index_survives_raising_properties() -> None:

    class Touchy:

        @property
        def boom(self):
            raise RuntimeError("do not touch")

    module = types.ModuleType("touchy")
    module.touchy = Touchy()
    module.other = types.SimpleNamespace(boom=1)
    assert SysModulesIndex({"touchy": module}).find_by_props(["boom"]) is module.other


def test_sys_modules_index_first_match_wins() -> None:
    first = types.ModuleType("first")
    first.get = lambda: "first"
    second = types.ModuleType("second")
    second.get = lambda: "second"
    second.put = lambda: None
    index = SysModulesIndex({"first": first, "second": second})

    assert index.find_by_props(["get"]) is first
    # more names single out the wanted object
    assert index.find_by_props(["get", "put"]) is second
