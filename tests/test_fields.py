from datetime import date, datetime, time, timedelta, timezone

import pytest
from polarion_client.field_types import TableField, TextContent
from polarion_client.fields import CustomFields
from polarion_client.relationships import RelationshipRef, ResourceKind


@pytest.fixture
def cf():
    return CustomFields(
        {
            "name": "Widget",
            "count": 7,
            "ratio": 3.9,
            "negative": -3.9,
            "price": "12.50",
            "junk": "abc",
            "flag": True,
            "nothing": None,
            "desc": {"type": "text/html", "value": "<b>hi</b>"},
            "half_desc": {"value": 5},
            "at": "13:45:09",
            "on": "2024-02-29",
            "when": "2024-03-01T10:15:00Z",
            "took": "1d 2h 30m",
            "bad_time": "25:00:00",
            "bad_date": "2024-13-01",
            "bad_when": "2024-03-01 10:15",
            "items": [1, 2],
        }
    )


def test_get_string_and_enum(cf):
    assert cf.get_string("name") == ("Widget", True)
    assert cf.get_enum("name") == ("Widget", True)
    assert cf.get_string("count") == ("", False)
    assert cf.get_string("missing") == ("", False)
    assert cf.get_string("nothing") == ("", False)


def test_get_int_truncates_floats(cf):
    assert cf.get_int("count") == (7, True)
    assert cf.get_int("ratio") == (3, True)
    assert cf.get_int("negative") == (-3, True)
    assert cf.get_int("junk") == (0, False)
    assert cf.get_int("price") == (0, False)
    assert cf.get_int("flag") == (0, False)
    assert cf.get_int("nothing") == (0, False)


def test_get_int_rejects_non_finite():
    assert CustomFields({"x": float("inf")}).get_int("x") == (0, False)
    assert CustomFields({"x": float("nan")}).get_int("x") == (0, False)


def test_get_float_accepts_numbers_and_numeric_strings(cf):
    assert cf.get_float("ratio") == (3.9, True)
    assert cf.get_float("count") == (7.0, True)
    assert cf.get_float("price") == (12.5, True)
    assert cf.get_float("junk") == (0.0, False)
    assert cf.get_float("flag") == (0.0, False)
    assert cf.get_float("items") == (0.0, False)


def test_get_bool(cf):
    assert cf.get_bool("flag") == (True, True)
    assert cf.get_bool("count") == (False, False)
    assert cf.get_bool("missing") == (False, False)


def test_get_text_from_mapping_and_model(cf):
    text, ok = cf.get_text("desc")
    assert ok
    assert text == TextContent(type="text/html", value="<b>hi</b>")

    text, ok = cf.get_text("half_desc")
    assert ok
    assert (text.type, text.value) == ("", "")

    cf.set_text("plain", TextContent.plain("x"))
    assert cf.get_text("plain") == (TextContent(type="text/plain", value="x"), True)
    assert cf.get_text("name") == (None, False)


def test_temporal_getters(cf):
    assert cf.get_time_only("at") == (time(13, 45, 9), True)
    assert cf.get_date_only("on") == (date(2024, 2, 29), True)
    assert cf.get_date_time("when") == (
        datetime(2024, 3, 1, 10, 15, tzinfo=timezone.utc),
        True,
    )
    assert cf.get_duration("took") == (timedelta(days=1, hours=2, minutes=30), True)


def test_temporal_parse_failures_are_not_found(cf):
    assert cf.get_time_only("bad_time") == (None, False)
    assert cf.get_date_only("bad_date") == (None, False)
    assert cf.get_date_time("bad_when") == (None, False)
    assert cf.get_duration("junk") == (None, False)
    assert cf.get_date_only("count") == (None, False)
    assert cf.get_time_only("missing") == (None, False)


def test_out_of_range_duration_is_not_found():
    assert CustomFields({"d": "9999999999d"}).get_duration("d") == (None, False)


def test_get_table_from_mapping_tolerates_bad_rows():
    cf = CustomFields(
        {
            "tbl": {
                "keys": ["a", 5, "c"],
                "rows": [
                    {"values": [{"type": "text/plain", "value": "1"}, "oops", {}]},
                    "not-a-row",
                    {"no_values": True},
                ],
            }
        }
    )

    table, ok = cf.get_table("tbl")
    assert ok
    assert table.keys == ["a", "", "c"]
    assert table.row_count == 3
    assert table.get_cell(0, 0).value == "1"
    assert table.get_cell(0, 1).model_dump() == {"type": "", "value": ""}
    assert table.get_cell(0, 2).model_dump() == {"type": "", "value": ""}
    assert table.get_row(1) == []
    assert table.get_row(2) == []


def test_get_table_prebuilt_and_wrong_shape():
    table = TableField(keys=["k"])
    cf = CustomFields({"tbl": table, "other": [1]})
    assert cf.get_table("tbl") == (table, True)
    assert cf.get_table("other") == (None, False)


def test_mutators_are_verbatim():
    data = {}
    cf = CustomFields(data)

    cf.set("anything", {"weird": [1, "shape"]})
    cf.set("nullable", None)
    assert data["anything"] == {"weird": [1, "shape"]}
    assert cf.has("nullable")
    assert not cf.has("missing")

    cf.delete("nullable")
    cf.delete("never-there")
    assert not cf.has("nullable")
    assert len(cf) == 1


def test_typed_setters_store_service_strings():
    cf = CustomFields()
    cf.set_time_only("t", time(8, 5, 0))
    cf.set_date_only("d", date(2024, 1, 2))
    cf.set_date_time("dt", datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc))
    cf.set_duration("dur", timedelta(hours=26, minutes=1))

    assert cf.raw == {
        "t": "08:05:00",
        "d": "2024-01-02",
        "dt": "2024-01-02T03:04:05Z",
        "dur": "1d 2h 1m",
    }
    assert cf.get_duration("dur") == (timedelta(hours=26, minutes=1), True)


def test_relationship_accessors_round_trip():
    cf = CustomFields()
    ref = RelationshipRef(kind=ResourceKind.WORK_ITEM, id="P/P-7", revision="1234")

    cf.set_relationship("parent", ref)
    assert cf["parent"] == {
        "data": {"type": "workitems", "id": "P/P-7", "revision": "1234"}
    }
    assert cf.get_relationship("parent") == (ref, True)

    cf.set_relationships("owners", [RelationshipRef.user("a"), RelationshipRef.user("b")])
    assert [r.id for r in cf.get_relationships("owners")] == ["a", "b"]

    cf.set_relationship("parent", None)
    assert not cf.has("parent")


def test_container_is_a_live_view():
    data = {"x": 1}
    cf = CustomFields(data)
    cf["y"] = 2
    del cf["x"]
    assert data == {"y": 2}
    assert dict(cf) == {"y": 2}


def test_get_float_rejects_non_finite():
    assert CustomFields({"x": float("inf")}).get_float("x") == (0.0, False)
    assert CustomFields({"x": "nan"}).get_float("x") == (0.0, False)
