"""
Test has-one, belongs-to, has-many and belongs-to-many relations on the
memory driver.
"""

from starrecord import BelongsToMany, HasMany, Pivot

from sample_models import Balance, Category, Person, Post


def make_person(name="Bob"):
    person = Person({"name": name})
    assert person.save(), person.errors()
    return person


# Keys

def test_default_keys():
    person = Person()
    relation = person.posts()

    assert relation.local_key == "id"
    assert relation.foreign_key == "person_id"

    post = Post()
    parent = post.person()
    assert parent.local_key == "person_id"
    assert parent.foreign_key == "id"


def test_relations_of_unsaved_models_are_empty(driver):
    assert Person().posts().get_results() is None
    assert Person().balance().get_results() is None
    assert Post().person().get_results() is None
    assert Post().categories().get_results() is None


def test_relation_forwards_to_its_query(driver):
    person = make_person()
    relation = person.posts()

    assert relation.sort("title desc") is relation.query
    assert relation.get_where() == relation.query.get_where()


# Has one

def test_has_one(driver):
    person = make_person()

    balance = person.balance().create({"amount": 10})
    assert balance.persisted()
    assert balance.person_id == person.id()

    assert person.balance().get_results().amount == 10
    assert person.related("balance").id() == balance.id()

    person.balance().detach()
    assert person.balance().get_results() is None
    assert Balance.find(balance.id()).person_id is None


# Belongs to

def test_belongs_to(driver):
    bob = make_person("Bob")
    ann = make_person("Ann")

    post = Post({"title": "Hello", "person_id": bob.id()})
    assert post.save()

    assert post.person().get_results().name == "Bob"

    post.person().attach(ann)
    assert Post.find(post.id()).person().get_results().name == "Ann"

    post.person().detach()
    assert Post.find(post.id()).person().get_results() is None


def test_belongs_to_create_saves_parent(driver):
    post = Post({"title": "Orphan"})
    assert post.save()

    parent = post.person().create({"name": "Cid"})

    assert parent.persisted()
    assert Post.find(post.id()).person_id == parent.id()


def test_relation_cache_can_be_replaced_and_reloaded(driver):
    bob = make_person("Bob")
    ann = make_person("Ann")
    post = Post({"title": "Hello", "person_id": bob.id()})
    assert post.save()

    assert post.related("person").name == "Bob"

    post.person_id = ann.id()
    post.set_relation("person", None)
    assert post.related("person") is None
    post.load_relationship("person")
    assert post.related("person").name == "Ann"


# Has many

def test_has_many(driver):
    person = make_person()
    make_person("Ann").posts().create({"title": "Not Bob's"})

    first = person.posts().create({"title": "First"})
    second = person.posts().create({"title": "Second"})

    posts = person.posts().get_results()
    assert [post.title for post in posts] == ["First", "Second"]
    assert person.posts().count() == 2

    person.posts().detach(second)
    assert [post.id() for post in person.posts().get_results()] == [first.id()]
    assert Post.find(second.id()).person_id is None


def test_has_many_attach(driver):
    person = make_person()
    post = Post({"title": "Loose"})

    person.posts().attach(post)

    assert post.persisted()
    assert [p.title for p in person.posts().get_results()] == ["Loose"]


def test_has_many_sync_deletes_unlisted(driver):
    person = make_person()
    keep = person.posts().create({"title": "Keep"})
    person.posts().create({"title": "Drop one"})
    person.posts().create({"title": "Drop two"})

    assert person.posts().sync([keep.id()]) == 2
    assert [post.title for post in person.posts().get_results()] == ["Keep"]

    assert Person().posts().sync([]) == 0


# Belongs to many

def test_pivot_model_type(driver):
    relation = Post().categories()
    pivot = relation.pivot

    assert isinstance(relation, BelongsToMany)
    assert issubclass(pivot, Pivot)
    assert relation.tablename == "CategoryPost"
    assert pivot.get_tablename() == "CategoryPost"
    assert pivot.id_properties == ["post_id", "category_id"]
    assert pivot is Post().categories().pivot


def test_belongs_to_many_attach_and_detach(driver):
    post = Post({"title": "Hello"})
    assert post.save()
    news = Category({"name": "News"})
    tech = Category({"name": "Tech"})
    assert news.save() and tech.save()

    post.categories().attach(news)
    post.categories().attach(tech)

    names = sorted(category.name for category in post.categories().get_results())
    assert names == ["News", "Tech"]
    assert [p.title for p in news.posts().get_results()] == ["Hello"]

    assert post.categories().detach(news)
    assert [c.name for c in post.categories().get_results()] == ["Tech"]
    assert news.posts().get_results() == []


def test_belongs_to_many_sync(driver):
    post = Post({"title": "Hello"})
    assert post.save()
    categories = [Category({"name": name}) for name in ("A", "B", "C")]
    for category in categories:
        assert category.save()

    post.categories().attach(categories[0])
    post.categories().attach(categories[1])

    post.categories().sync([categories[1].id(), categories[2].id()])

    names = sorted(category.name for category in post.categories().get_results())
    assert names == ["B", "C"]
    assert len(driver.table("CategoryPost")) == 2


def test_has_many_relation_type():
    assert isinstance(Person().posts(), HasMany)
