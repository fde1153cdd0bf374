import pytest

from studio_engines.common.errors import AmbiguousSelector, InvalidSelector, NotFound
from studio_engines.composition_ir.tests.builders import audio, make_ir, text, video
from studio_engines.element_selectors.models import (
    ByIdSelector,
    ByIndexSelector,
    ByLabelSelector,
    ByTypeSelector,
)
from studio_engines.element_selectors.service import parse_selector, require_unambiguous, resolve_selector


@pytest.fixture
def ir():
    return make_ir(
        video("v1", "Intro", from_frame=0, duration=90),
        text("t1", "Title", from_frame=0, duration=60),
        video("v2", "Gorilla closeup", from_frame=90, duration=45),
        text("t2", None, from_frame=60, duration=30),
        video("v3", "gorilla wide", from_frame=135, duration=90),
        text("t3", "Outro", from_frame=200, duration=25),
        audio("a1", "Music bed", from_frame=0, duration=225),
    )


def test_by_id_exact_and_idempotent(ir):
    first = resolve_selector(ByIdSelector(id="v2"), ir)
    second = resolve_selector(ByIdSelector(id="v2"), ir)
    assert first.element_ids == second.element_ids == ["v2"]
    assert not first.ambiguous


def test_by_id_unknown_is_not_found(ir):
    with pytest.raises(NotFound) as exc:
        resolve_selector(ByIdSelector(id="nope"), ir)
    assert exc.value.element_id == "nope"


def test_by_id_blank_is_invalid(ir):
    with pytest.raises(InvalidSelector):
        resolve_selector(ByIdSelector(id="  "), ir)


def test_by_label_is_case_insensitive_and_unambiguous(ir):
    result = resolve_selector(ByLabelSelector(label="outro"), ir)
    assert result.element_ids == ["t3"]
    assert not result.ambiguous


def test_by_label_two_gorillas_is_ambiguous(ir):
    result = resolve_selector(ByLabelSelector(label="gorilla"), ir)
    assert result.ambiguous
    assert len(result.options) == 2
    assert [o.element_id for o in result.options] == ["v2", "v3"]
    opt = result.options[0]
    assert opt.label == "Gorilla closeup"
    assert opt.type == "video"
    assert opt.description == "video #2 at frame 90 (1.5s), layer 3"
    assert opt.layer_index == 2


def test_by_label_match_all_resolves_every_match(ir):
    result = resolve_selector(ByLabelSelector(label="GORILLA", match_all=True), ir)
    assert result.element_ids == ["v2", "v3"]
    assert not result.ambiguous


def test_by_label_skips_unlabeled_and_reports_not_found(ir):
    with pytest.raises(NotFound):
        resolve_selector(ByLabelSelector(label="bigfoot"), ir)


def test_by_label_blank_is_invalid(ir):
    with pytest.raises(InvalidSelector):
        resolve_selector(ByLabelSelector(label=""), ir)


def test_by_type_with_index_is_one_based(ir):
    result = resolve_selector(ByTypeSelector(element_type="text", index=2), ir)
    assert result.element_ids == ["t2"]
    assert not result.ambiguous


def test_by_type_without_index(ir):
    single = resolve_selector(ByTypeSelector(element_type="audio"), ir)
    assert single.element_ids == ["a1"]

    many = resolve_selector(ByTypeSelector(element_type="video"), ir)
    assert many.ambiguous
    assert [o.element_id for o in many.options] == ["v1", "v2", "v3"]
    assert many.options[0].description.startswith("video #1 at frame 0")


def test_by_type_where_filters_before_indexing(ir):
    result = resolve_selector(ByTypeSelector(element_type="video", where={"from_frame": 90}), ir)
    assert result.element_ids == ["v2"]


def test_by_type_missing_type_is_not_found(ir):
    with pytest.raises(NotFound):
        resolve_selector(ByTypeSelector(element_type="shape"), ir)


def test_by_index_over_whole_ir_and_filtered(ir):
    assert resolve_selector(ByIndexSelector(index=1), ir).element_ids == ["v1"]
    assert resolve_selector(ByIndexSelector(index=7), ir).element_ids == ["a1"]
    assert resolve_selector(ByIndexSelector(index=3, element_type="video"), ir).element_ids == ["v3"]
    assert resolve_selector(ByIndexSelector(index=1, where={"src": "https://cdn.example.com/v2.m3u8"}), ir).element_ids == ["v2"]


def test_by_index_out_of_range_and_zero(ir):
    with pytest.raises(NotFound):
        resolve_selector(ByIndexSelector(index=8), ir)
    with pytest.raises(NotFound):
        resolve_selector(ByIndexSelector(index=4, element_type="video"), ir)
    with pytest.raises(InvalidSelector):
        resolve_selector(ByIndexSelector(index=0), ir)


def test_empty_composition_is_not_found():
    with pytest.raises(NotFound):
        resolve_selector(ByIdSelector(id="v1"), make_ir())


def test_require_unambiguous_raises_with_options(ir):
    result = resolve_selector(ByLabelSelector(label="gorilla"), ir)
    with pytest.raises(AmbiguousSelector) as exc:
        require_unambiguous(result)
    assert len(exc.value.options) == 2
    assert require_unambiguous(resolve_selector(ByIdSelector(id="t1"), ir)) == ["t1"]


def test_resolution_does_not_mutate_ir(ir):
    before = ir.model_dump()
    resolve_selector(ByLabelSelector(label="gorilla"), ir)
    resolve_selector(ByTypeSelector(element_type="text", index=3), ir)
    assert ir.model_dump() == before


@pytest.mark.parametrize(
    "payload, expected",
    [
        ({"kind": "by_id", "id": "v1"}, ByIdSelector),
        ({"kind": "byLabel", "label": "intro"}, ByLabelSelector),
        ({"kind": "by-index", "index": 2}, ByIndexSelector),
        ({"kind": "by_type", "element_type": "text", "where": {"from": 0}}, ByTypeSelector),
    ],
)
def test_parse_selector_accepts_spellings(payload, expected):
    selector = parse_selector(payload)
    assert isinstance(selector, expected)


def test_parse_selector_maps_from_in_where():
    selector = parse_selector({"kind": "by_type", "element_type": "text", "where": {"from": 0}})
    assert selector.where == {"from_frame": 0}


@pytest.mark.parametrize(
    "payload",
    [
        {"kind": "by_id"},
        {"kind": "by_label"},
        {"kind": "by_type", "index": 1},
        {"kind": "by_color", "color": "red"},
        {"id": "v1"},
        "v1",
    ],
)
def test_parse_selector_rejects_missing_fields(payload):
    with pytest.raises(InvalidSelector):
        parse_selector(payload)
