from __future__ import annotations

import pytest

from kld.core.actions import (
    AddElement,
    AddKey,
    ApplyTemplate,
    DuplicateKeys,
    EditorSession,
    MoveKeys,
    NudgeKeys,
    RemoveElement,
    RemoveKeys,
    SwapKeys,
    UpdateElement,
    UpdateKey,
    UpdatePaper,
    apply_action,
    create_shape_element,
    create_text_element,
)
from kld.core.models import ImageElement, Key, SnapSettings
from kld.utils.errors import KldValidationError


@pytest.fixture
def two_keys(make_project):
    return make_project(
        Key(id="a", x=0.0, y=0.0, width=18.0, height=18.0),
        Key(id="b", x=20.0, y=0.0, width=18.0, height=18.0),
    )


def test_apply_action_never_mutates_input(two_keys) -> None:
    before = two_keys.to_dict()
    out = apply_action(two_keys, MoveKeys((("a", 5.0, 6.0),)))
    assert two_keys.to_dict() == before
    assert (out.get_key("a").x, out.get_key("a").y) == (5.0, 6.0)


def test_add_key_uses_free_slot(two_keys) -> None:
    out = apply_action(two_keys, AddKey(width=18.0, height=18.0, key_id="c"))
    c = out.get_key("c")
    assert (c.x, c.y) == (40.0, 0.0)


def test_add_key_rejects_duplicate_id(two_keys) -> None:
    with pytest.raises(KldValidationError):
        apply_action(two_keys, AddKey(key_id="a"))


def test_update_key_validates(two_keys) -> None:
    out = apply_action(two_keys, UpdateKey("a", {"rotation": 15.0, "background": "#ff0000"}))
    assert out.get_key("a").rotation == 15.0
    with pytest.raises(KldValidationError):
        apply_action(two_keys, UpdateKey("a", {"width": 0.0}))
    with pytest.raises(KldValidationError):
        apply_action(two_keys, UpdateKey("a", {"elements": []}))


@pytest.mark.parametrize(
    "changes",
    [
        {"width": "abc"},
        {"height": None},
        {"x": float("nan")},
        {"key_type": "circle"},
        {"padding": -1.0},
        {"background": "red"},
        {"rotation": True},
    ],
)
def test_update_key_rejects_bad_values(two_keys, changes) -> None:
    before = two_keys.to_dict()
    with pytest.raises(KldValidationError):
        apply_action(two_keys, UpdateKey("a", changes))
    assert two_keys.to_dict() == before


def test_update_key_coerces_numbers(two_keys) -> None:
    out = apply_action(two_keys, UpdateKey("a", {"width": "19.5", "corner_radius": -2}))
    key = out.get_key("a")
    assert key.width == 19.5
    assert key.corner_radius == 0.0


@pytest.fixture
def key_with_elements(two_keys):
    p = apply_action(two_keys, AddElement("a", create_text_element("Q")))
    return apply_action(p, AddElement("a", create_shape_element()))


@pytest.mark.parametrize(
    "changes",
    [
        {"align_x": "sideways"},
        {"align_y": "upside"},
        {"z_index": "front"},
        {"font_size": 0},
        {"color": "blue"},
        {"text": 42},
    ],
)
def test_update_text_element_rejects_bad_values(key_with_elements, changes) -> None:
    text = key_with_elements.get_key("a").elements[0]
    with pytest.raises(KldValidationError):
        apply_action(key_with_elements, UpdateElement("a", text.id, changes))


def test_update_element_fields_follow_element_type(key_with_elements) -> None:
    text, shape = key_with_elements.get_key("a").elements
    with pytest.raises(KldValidationError):
        apply_action(key_with_elements, UpdateElement("a", shape.id, {"fit": "cover"}))
    with pytest.raises(KldValidationError):
        apply_action(key_with_elements, UpdateElement("a", text.id, {"corner_radius": 1.0}))
    out = apply_action(key_with_elements, UpdateElement("a", text.id, {"align_x": "Right", "z_index": "3"}))
    el = out.get_key("a").get_element(text.id)
    assert (el.align_x, el.z_index) == ("right", 3)


def test_update_image_fit_is_checked(two_keys) -> None:
    img = ImageElement(id="img", data_url="data:image/png;base64,")
    p = apply_action(two_keys, AddElement("a", img))
    with pytest.raises(KldValidationError):
        apply_action(p, UpdateElement("a", "img", {"fit": "stretch"}))
    out = apply_action(p, UpdateElement("a", "img", {"fit": "cover"}))
    assert out.get_key("a").get_element("img").fit == "cover"


def test_unknown_ids_are_ignored(two_keys) -> None:
    out = apply_action(two_keys, UpdateKey("zzz", {"x": 3.0}))
    assert out.to_dict() == two_keys.to_dict()


def test_remove_and_swap(two_keys) -> None:
    swapped = apply_action(two_keys, SwapKeys("a", "b"))
    assert swapped.get_key("a").x == 20.0
    assert swapped.get_key("b").x == 0.0
    removed = apply_action(two_keys, RemoveKeys(("a",)))
    assert [k.id for k in removed.layout.keys] == ["b"]


def test_nudge_snaps_to_grid(two_keys) -> None:
    two_keys.paper.snap = SnapSettings(enabled=True, step_mm=2.0)
    out = apply_action(two_keys, NudgeKeys(("a",), dx=1.3, dy=0.4))
    assert (out.get_key("a").x, out.get_key("a").y) == (2.0, 0.0)
    two_keys.paper.snap = None
    out = apply_action(two_keys, NudgeKeys(("a",), dx=0.1))
    assert out.get_key("a").x == pytest.approx(0.1)


def test_duplicate_gets_fresh_ids(two_keys) -> None:
    two_keys.layout.keys[0].elements.append(create_text_element("A"))
    out = apply_action(two_keys, DuplicateKeys(("a",), dx=0.0, dy=20.0))
    assert len(out.layout.keys) == 3
    dup = out.layout.keys[-1]
    assert dup.id not in ("a", "b")
    assert (dup.x, dup.y) == (0.0, 20.0)
    assert dup.elements[0].id != out.get_key("a").elements[0].id


def test_element_lifecycle(two_keys) -> None:
    el = create_shape_element("#112233")
    p = apply_action(two_keys, AddElement("a", el))
    assert p.get_key("a").get_element(el.id) is not None
    with pytest.raises(KldValidationError):
        apply_action(p, AddElement("a", el))
    p = apply_action(p, UpdateElement("a", el.id, {"opacity": 0.5}))
    assert p.get_key("a").get_element(el.id).opacity == 0.5
    with pytest.raises(KldValidationError):
        apply_action(p, UpdateElement("a", el.id, {"id": "other"}))
    p = apply_action(p, RemoveElement("a", el.id))
    assert p.get_key("a").elements == []


def test_text_slots() -> None:
    el = create_text_element("Esc", "top-left")
    assert (el.align_x, el.align_y) == ("left", "top")
    assert create_text_element("X").align_x == "center"


def test_update_paper_validation(two_keys) -> None:
    out = apply_action(two_keys, UpdatePaper({"size": "Letter", "orientation": "landscape"}))
    assert out.paper.page_size_mm() == (279.4, 215.9)
    with pytest.raises(KldValidationError):
        apply_action(two_keys, UpdatePaper({"size": "B5"}))
    with pytest.raises(KldValidationError):
        apply_action(two_keys, UpdatePaper({"margin_mm": -1.0}))


def test_full_size_template_switches_paper(make_project) -> None:
    out = apply_action(make_project(), ApplyTemplate(name="ansi104"))
    assert (out.paper.size, out.paper.orientation) == ("A3", "landscape")
    assert out.layout.name == "ANSI 104"
    assert len(out.layout.keys) == 98


def test_cheapino_template_sets_snap(make_project) -> None:
    out = apply_action(make_project(), ApplyTemplate(name="cheapino"))
    assert out.paper.orientation == "landscape"
    assert out.paper.snap is not None and out.paper.snap.step_mm == 1.0
    assert len(out.layout.keys) == 36


def test_grid_template_and_unknown(make_project) -> None:
    out = apply_action(make_project(), ApplyTemplate(name="grid", rows=2, cols=3))
    assert len(out.layout.keys) == 6
    assert out.layout.name == "2x3 grid"
    with pytest.raises(KldValidationError):
        apply_action(make_project(), ApplyTemplate(name="nope"))
    with pytest.raises(KldValidationError):
        apply_action(make_project(), ApplyTemplate(name="grid", rows=0))


class TestEditorSession:
    def test_dispatch_undo_redo(self, two_keys) -> None:
        s = EditorSession(two_keys, history_depth=10)
        s.dispatch(MoveKeys((("a", 50.0, 50.0),)))
        assert s.project.get_key("a").x == 50.0
        s.undo()
        assert s.project.get_key("a").x == 0.0
        s.redo()
        assert s.project.get_key("a").x == 50.0

    def test_rejected_action_keeps_state(self, two_keys) -> None:
        s = EditorSession(two_keys, history_depth=10)
        with pytest.raises(KldValidationError):
            s.dispatch(UpdateKey("a", {"height": -3.0}))
        assert s.project.get_key("a").height == 18.0
        assert not s.history.can_undo

    def test_selection_is_pruned(self, two_keys) -> None:
        s = EditorSession(two_keys)
        s.select(["a", "b", "ghost"])
        assert s.selection == ["a", "b"]
        s.dispatch(RemoveKeys(("a",)))
        assert s.selection == ["b"]

    def test_cut_view_does_not_touch_layout(self, two_keys) -> None:
        two_keys.layout.keys[0].rotation = 30.0
        s = EditorSession(two_keys)
        s.set_view_mode("cut")
        shown = s.display_project()
        assert all(k.rotation == 0.0 for k in shown.layout.keys)
        assert s.project.get_key("a").rotation == 30.0
        with pytest.raises(KldValidationError):
            s.set_view_mode("3d")

    def test_load_resets_history(self, two_keys, make_project) -> None:
        s = EditorSession(two_keys)
        s.dispatch(RemoveKeys(("a",)))
        s.load(make_project())
        assert not s.history.can_undo
        assert s.selection == []
