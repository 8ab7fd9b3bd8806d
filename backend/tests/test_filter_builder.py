from utils.filter_builder import build_transaction_filters, describe_filters, normalize_name


def test_normalize_name():
    assert normalize_name("  bedok ") == "BEDOK"
    assert normalize_name("4 room") == "4 ROOM"


def test_no_filters_no_conditions(app_ctx):
    assert build_transaction_filters({}) == []
    assert build_transaction_filters({"town": None, "flat_type": ""}) == []


def test_each_filter_is_one_condition(app_ctx):
    conditions = build_transaction_filters({
        "town": "bedok",
        "flat_type": "4 room",
        "month_from": "2024-01",
        "month_to": "2024-06",
        "floor_area_min": 80,
        "remaining_lease_min": 60,
    })
    assert len(conditions) == 6


def test_names_are_upper_cased_in_condition(app_ctx):
    conditions = build_transaction_filters({"town": " bedok "})

    assert len(conditions) == 1
    compiled = str(conditions[0].compile(compile_kwargs={"literal_binds": True}))
    assert "'BEDOK'" in compiled


def test_filters_narrow_query(make_transaction):
    from services.analytics_service import analytics_query
    from models import Transaction

    make_transaction(town="BEDOK", flat_type="4 ROOM", month="2024-01")
    make_transaction(town="BEDOK", flat_type="3 ROOM", month="2024-02")
    make_transaction(town="YISHUN", flat_type="4 ROOM", month="2024-03")

    def count(filters):
        return analytics_query(Transaction.id).filter(*build_transaction_filters(filters)).count()

    assert count({}) == 3
    assert count({"town": "bedok"}) == 2
    assert count({"town": "bedok", "flat_type": "4 room"}) == 1
    assert count({"month_from": "2024-02"}) == 2
    assert count({"year_from": "2024", "year_to": "2024"}) == 3


def test_describe_filters_drops_empty():
    assert describe_filters({"town": "BEDOK", "flat_type": None, "months": 12}) == {
        "town": "BEDOK",
        "months": 12,
    }
