"""Tests for influence slot negotiation and the headless node."""

from facemimic.core.constants import EXPRESSION_CHANNELS
from facemimic.scene.binding import InfluenceBinding
from facemimic.scene.headless_node import HeadlessSceneNode


def test_full_asset_binds_every_channel(node):
    binding = InfluenceBinding.negotiate(node)
    assert binding.bound == EXPRESSION_CHANNELS
    assert binding.unbound == ()
    assert binding.is_complete


def test_partial_asset_reports_missing_required(caplog):
    node = HeadlessSceneNode(influences=["eyeBlinkLeft", "mouthPucker", "hairSway"])
    binding = InfluenceBinding.negotiate(node)

    assert binding.bound == ("eyeBlinkLeft", "mouthPucker")
    assert "jawOpen" in binding.unbound
    assert binding.missing_required == ("eyeBlinkRight", "jawOpen", "mouthSmileLeft")
    assert not binding.is_complete
    assert "missing required influence slots" in caplog.text


def test_write_touches_only_bound_slots():
    node = HeadlessSceneNode(influences=["jawOpen", "hairSway"])
    binding = InfluenceBinding.negotiate(node, required=None)
    binding.write(node, {"jawOpen": 0.4, "hairSway": 0.9, "mouthPucker": 1.0})
    assert node.influences == {"jawOpen": 0.4, "hairSway": 0.0}


def test_headless_node_snapshot_and_close():
    with HeadlessSceneNode(influences=["jawOpen"]) as node:
        node.set_transform((1.0, 2.0, 3.0), (0.1, 0.2, 0.3), (1.0, 1.0, 1.0))
        node.set_visible(True)
        snapshot = node.snapshot()
    assert node.closed
    assert snapshot == {
        "visible": True,
        "position": [1.0, 2.0, 3.0],
        "rotation": [0.1, 0.2, 0.3],
        "scale": [1.0, 1.0, 1.0],
        "rotation_order": "YXZ",
        "influences": {"jawOpen": 0.0},
    }
