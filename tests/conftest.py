"""Pytest configuration and shared fixtures."""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Optional

import pytest
from pxr import Sdf, Usd

from usdpipeline import variant_sets


def _asset_layer(root_name: str, children: List[str]) -> Sdf.Layer:
    """Anonymous layer with a default prim ``root_name`` and the given descendants."""
    layer = Sdf.Layer.CreateAnonymous(".usda")
    stage = Usd.Stage.Open(layer)
    stage.DefinePrim(f"/{root_name}", "Xform")
    for child in children:
        stage.DefinePrim(f"/{root_name}/{child}", "Xform")
    layer.defaultPrim = root_name
    return layer


def _add_instance(stage: Usd.Stage, path: str, asset: Sdf.Layer) -> Usd.Prim:
    prim = stage.DefinePrim(path, "Xform")
    prim.GetReferences().AddReference(asset.identifier)
    prim.SetInstanceable(True)
    return prim


@dataclass
class InstancedScene:
    """In-memory stage plus the asset layers its instances reference.

    The asset layers are held here so anonymous layers outlive the test body.
    """

    stage: Usd.Stage
    assets: Dict[str, Sdf.Layer] = field(default_factory=dict)

    def prototype_path(self, instance_path: str) -> Sdf.Path:
        return self.stage.GetPrimAtPath(instance_path).GetPrototype().GetPath()


@pytest.fixture
def instanced_scene() -> InstancedScene:
    """``/World/Set`` instances an asset holding ``Table`` and ``Table/Lamp``."""
    asset = _asset_layer("Set", ["Table", "Table/Lamp"])
    stage = Usd.Stage.CreateInMemory()
    stage.DefinePrim("/World", "Xform")
    stage.DefinePrim("/World/Ground", "Xform")
    _add_instance(stage, "/World/Set", asset)
    return InstancedScene(stage=stage, assets={"set": asset})


@pytest.fixture
def shared_scene() -> InstancedScene:
    """``/World/SetA`` and ``/World/SetB`` share one prototype."""
    asset = _asset_layer("Set", ["Table"])
    stage = Usd.Stage.CreateInMemory()
    stage.DefinePrim("/World", "Xform")
    _add_instance(stage, "/World/SetA", asset)
    _add_instance(stage, "/World/SetB", asset)
    return InstancedScene(stage=stage, assets={"set": asset})


@pytest.fixture
def nested_scene() -> InstancedScene:
    """``/World/Room`` instances a room whose ``Set`` child instances the set asset."""
    set_asset = _asset_layer("Set", ["Table"])
    room_asset = Sdf.Layer.CreateAnonymous(".usda")
    room_stage = Usd.Stage.Open(room_asset)
    room_stage.DefinePrim("/Room", "Xform")
    _add_instance(room_stage, "/Room/Set", set_asset)
    room_asset.defaultPrim = "Room"

    stage = Usd.Stage.CreateInMemory()
    stage.DefinePrim("/World", "Xform")
    _add_instance(stage, "/World/Room", room_asset)
    return InstancedScene(stage=stage, assets={"set": set_asset, "room": room_asset})


@pytest.fixture
def scene_files(tmp_path: Path) -> Path:
    """Write ``set.usda`` and ``shot.usda`` (instancing the set) and return the shot path."""
    asset_path = tmp_path / "set.usda"
    asset_stage = Usd.Stage.CreateNew(str(asset_path))
    asset_stage.DefinePrim("/Set", "Xform")
    asset_stage.DefinePrim("/Set/Table", "Xform")
    asset_stage.GetRootLayer().defaultPrim = "Set"
    asset_stage.GetRootLayer().Save()

    shot_path = tmp_path / "shot.usda"
    shot_stage = Usd.Stage.CreateNew(str(shot_path))
    shot_stage.DefinePrim("/World", "Xform")
    set_prim = shot_stage.DefinePrim("/World/Set", "Xform")
    set_prim.GetReferences().AddReference("./set.usda")
    set_prim.SetInstanceable(True)
    shot_stage.GetRootLayer().Save()
    return shot_path


class FakePrim:
    """Minimal prim double for states a real USD stage never produces."""

    def __init__(
        self,
        path: str,
        *,
        prototype: Optional[str] = None,
        instance_answers: Optional[Iterator[bool]] = None,
        sticky_flag: bool = True,
        graph: Optional["FakeGraph"] = None,
    ) -> None:
        self.path = Sdf.Path(path) if path else Sdf.Path.emptyPath
        self.prototype = prototype
        self.instanceable = prototype is not None or instance_answers is not None
        self.instance_answers = instance_answers
        self.sticky_flag = sticky_flag
        self.graph = graph
        self.set_calls: List[bool] = []

    def __bool__(self) -> bool:
        return not self.path.isEmpty

    def GetPath(self) -> Sdf.Path:
        return self.path

    def IsInstance(self) -> bool:
        if self.instance_answers is not None:
            return next(self.instance_answers)
        return self.instanceable

    def IsInstanceProxy(self) -> bool:
        return False

    def GetPrototype(self) -> "FakePrim":
        if not self.instanceable or self.prototype is None:
            return FakePrim("")
        return FakePrim(self.prototype)

    def SetInstanceable(self, instanceable: bool) -> bool:
        self.set_calls.append(instanceable)
        if self.sticky_flag:
            self.instanceable = instanceable
        return True


class FakeGraph:
    def __init__(self) -> None:
        self.prims: Dict[Sdf.Path, FakePrim] = {}

    def add(self, prim: FakePrim) -> FakePrim:
        self.prims[prim.path] = prim
        return prim

    def GetPrimAtPath(self, path: Sdf.Path) -> FakePrim:
        return self.prims.get(Sdf.Path(path), FakePrim(""))


@pytest.fixture
def fake_graph() -> FakeGraph:
    return FakeGraph()


@pytest.fixture(autouse=True)
def reset_variant_set_registry():
    """Every test starts and ends with an unbuilt variant-set registry."""
    variant_sets.reset_registered_variant_sets()
    yield
    variant_sets.reset_registered_variant_sets()
