"""
Test the query builder and paged iteration.
"""

from starrecord import Condition, Query, StarRecordConfig, set_config

from sample_models import Person, Widget


def test_sort_drops_malformed_clauses():
    query = Query(Widget).sort("name asc, id DESC, invalid, price upward, a b c")
    assert query.get_sort() == [("name", "asc"), ("id", "desc")]


def test_limit_is_clamped():
    query = Query(Widget)
    assert query.get_limit() == 100

    assert query.limit(5000).get_limit() == 1000
    assert query.limit(-3).get_limit() == 0
    assert query.start(-5).get_start() == 0
    assert query.start(20).get_start() == 20


def test_limits_follow_configuration():
    set_config(StarRecordConfig.from_dict({"query": {"default_limit": 10, "max_limit": 50}}))

    query = Query(Widget)
    assert query.get_limit() == 10
    assert query.limit(500).get_limit() == 50


def test_where_forms():
    query = (Query(Widget)
             .where({"name": "Bolt", "active": True})
             .where("sku", "A1")
             .where("price", 10, ">=")
             .where("price < 100"))

    assert query.get_where() == [
        Condition("name", "Bolt"),
        Condition("active", True),
        Condition("sku", "A1"),
        Condition("price", 10, ">="),
        "price < 100",
    ]


def test_equality_replaces_previous_equality():
    query = Query(Widget).where("sku", "A1").where("sku", 5, ">").where({"sku": "B2"})
    assert query.get_where() == [Condition("sku", "B2"), Condition("sku", 5, ">")]


def test_where_list_of_conditions():
    query = Query(Widget).where([("name", "Bolt"), ("price", 3, "<"), "stock > 0"])
    assert query.get_where() == [
        Condition("name", "Bolt"),
        Condition("price", 3, "<"),
        "stock > 0",
    ]


def test_with_deduplicates_relations():
    query = Query(Person).with_("posts", ["balance", "posts"])
    assert query.get_withs() == ["posts", "balance"]


def test_clone_is_independent():
    query = Query(Widget).where("name", "Bolt").sort("name asc")
    cloned = query.clone().where("sku", "A1")

    assert len(query.get_where()) == 1
    assert len(cloned.get_where()) == 2
    assert cloned.get_sort() == query.get_sort()


def test_execute_hydrates_models(mock_driver):
    mock_driver.query_models.return_value = [
        {"id": 1, "name": "Bolt", "sku": "A1"},
        {"id": "2", "name": "Nut", "sku": "B2"},
    ]

    widgets = Query(Widget).execute()

    assert [widget.id() for widget in widgets] == [1, 2]
    assert all(widget.persisted() for widget in widgets)
    mock_driver.load_model.assert_not_called()


def test_first(mock_driver):
    assert Query(Widget).first() is None

    mock_driver.query_models.return_value = [{"id": 1, "name": "Bolt"}]
    query = Query(Widget)
    assert query.first().name == "Bolt"
    assert query.get_limit() == 1

    assert [widget.name for widget in Query(Widget).first(2)] == ["Bolt"]


def test_all_fetches_pages_until_short_page(mock_driver):
    mock_driver.query_models.side_effect = [
        [{"id": 1}, {"id": 2}],
        [{"id": 3}],
    ]

    ids = [widget.id() for widget in Query(Widget).limit(2).all()]

    assert ids == [1, 2, 3]
    assert mock_driver.query_models.call_count == 2


def test_all_iterates_every_record(driver):
    for index in range(5):
        assert Widget({"name": f"widget {index}", "sku": f"S{index}"}).save()

    iterator = Widget.query().sort("id asc").limit(2).all()

    assert [widget.sku for widget in iterator] == ["S0", "S1", "S2", "S3", "S4"]
    assert [widget.sku for widget in iterator] == ["S0", "S1", "S2", "S3", "S4"]
    assert iterator.count() == 5


def test_total_records_ignores_paging(driver):
    for index in range(3):
        assert Widget({"name": f"widget {index}"}).save()

    assert Widget.query().limit(1).start(2).total_records() == 3
    assert Widget.where("name", "widget 1").count() == 1


def test_sort_and_page(driver):
    for name, age in (("Cid", 40), ("Ann", 20), ("Bob", 30), ("Dee", 30)):
        assert Person({"name": name, "age": age}).save()

    people = Person.query().sort("age desc, name asc").start(1).limit(2).execute()
    assert [person.name for person in people] == ["Bob", "Dee"]


def test_eager_loading(driver):
    person = Person({"name": "Bob"})
    assert person.save()
    person.posts().create({"title": "Hello"})

    people = Person.with_("posts").execute()

    assert [post.title for post in people[0]._relationships["posts"]] == ["Hello"]
    assert people[0].related("posts")[0].title == "Hello"
