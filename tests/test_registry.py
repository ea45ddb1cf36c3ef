"""
Test schema resolution and per-type initialization in the model registry.
"""

import threading

from starrecord import Model, Mutability, PropertyType, accessor, get_registry, mutator, registry

from sample_models import CachedPerson, Category, Person, Post, Widget


def test_schema_injects_default_id_and_sorts_properties():
    properties = Person.get_properties()

    assert list(properties) == sorted(properties)
    assert properties["id"].type == PropertyType.NUMBER
    assert properties["id"].mutable == Mutability.IMMUTABLE


def test_declared_id_is_kept():
    class Ticket(Model):
        properties = {"id": {"type": "string", "mutable": "create_only"}}

    assert Ticket.get_property("id").type == PropertyType.STRING
    assert Ticket.get_property("id").mutable == Mutability.CREATE_ONLY


def test_composite_ids_do_not_inject_id():
    class Membership(Model):
        id_properties = ["group_id", "user_id"]
        properties = {"group_id": {"type": "number"}, "user_id": {"type": "number"}}

    assert not Membership.has_property("id")


def test_auto_timestamp_properties():
    created_at = Post.get_property("created_at")
    updated_at = Post.get_property("updated_at")

    assert created_at.type == PropertyType.DATE
    assert created_at.mutable == Mutability.CREATE_ONLY
    assert updated_at.mutable == Mutability.MUTABLE
    assert not Widget.has_property("created_at")


def test_accessors_and_mutators_are_collected():
    schema = registry.schema(Person)

    assert set(schema.accessors) == {"display_name"}
    assert set(schema.mutators) == {"name"}
    assert Person.get_accessor("display_name") is Person.get_display_name
    assert Person.get_mutator("email") is None


def test_inherited_accessors():
    class Base(Model):
        properties = {"name": {}}

        @accessor("name")
        def upper_name(self, value):
            return value.upper() if value else value

    class Child(Base):
        @mutator("name")
        def trimmed_name(self, value):
            return value.strip()

    child = Child({"name": "  bob "})
    assert child.name == "BOB"


def test_initialize_runs_once_per_type():
    class Counted(Model):
        properties = {"name": {}}
        calls = 0

        @classmethod
        def initialize(cls):
            super().initialize()
            cls.calls += 1

    threads = [threading.Thread(target=Counted) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    Counted()
    assert Counted.calls == 1
    assert registry.is_initialized(Counted)


def test_reset_forgets_types_and_services(mock_driver):
    Widget.creating(lambda event: False)
    assert registry.is_initialized(Widget)

    registry.reset()

    assert not registry.is_initialized(Widget)
    assert registry.driver is None
    assert get_registry() is registry
    assert not registry.dispatcher(Widget).has_listeners()


def test_reset_can_keep_services(mock_driver):
    registry.reset(keep_services=True)
    assert Model.get_driver() is mock_driver


def test_default_tablenames():
    assert Widget.get_tablename() == "Widgets"
    assert Person.get_tablename() == "People"
    assert Category.get_tablename() == "Categories"
    assert CachedPerson.get_tablename() == "CachedPeople"

    class Entry(Model):
        tablename = "journal"

    assert Entry.get_tablename() == "journal"
