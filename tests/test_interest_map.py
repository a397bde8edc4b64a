from asteroidmq.interest import Interest, Subject
from asteroidmq.interest_map import InterestMap


def test_interest_map():
    interest_map = InterestMap()
    interest_map.insert(Interest("event/**/user/a"), 1)
    interest_map.insert(Interest("event/**/user/*"), 2)
    values = interest_map.find(Subject("event/hello-world/user/a"))
    assert 1 in values
    assert 2 in values


def test_specific_and_any():
    interest_map = InterestMap()
    interest_map.insert(Interest("events/hello-world"), "exact")
    interest_map.insert(Interest("events/*"), "any")
    assert interest_map.find(Subject("events/hello-world")) == {"exact", "any"}
    assert interest_map.find(Subject("events/other")) == {"any"}
    assert interest_map.find(Subject("events/a/b")) == set()
    assert interest_map.find(Subject("other/hello-world")) == set()


def test_recursive_any_needs_a_segment():
    interest_map = InterestMap()
    interest_map.insert(Interest("events/**"), "all")
    assert interest_map.find(Subject("events/a")) == {"all"}
    assert interest_map.find(Subject("events/a/b/c")) == {"all"}
    assert interest_map.find(Subject("events")) == set()


def test_root_any_matches_single_segment():
    interest_map = InterestMap()
    interest_map.insert(Interest("*"), "star")
    assert interest_map.find(Subject("hello-world")) == {"star"}
    assert interest_map.find(Subject("bye-world")) == {"star"}
    assert interest_map.find(Subject("a/b")) == set()


def test_slashes_are_collapsed():
    interest_map = InterestMap()
    interest_map.insert(Interest("/event//hello/"), "v")
    assert interest_map.find(Subject("event///hello")) == {"v"}


def test_delete_removes_all_interests():
    interest_map = InterestMap()
    interest_map.insert(Interest("event/*"), "a")
    interest_map.insert(Interest("event/hello"), "a")
    interest_map.insert(Interest("event/hello"), "b")
    interest_map.delete("a")
    assert interest_map.find(Subject("event/hello")) == {"b"}
    assert interest_map.interest_of("a") is None
    interest_map.delete("missing")
    assert interest_map.find(Subject("event/hello")) == {"b"}


def test_interest_of():
    interest_map = InterestMap()
    interest_map.insert(Interest("event/*"), 3)
    interest_map.insert(Interest("event/**/b2"), 3)
    assert interest_map.interest_of(3) == {Interest("event/*"), Interest("event/**/b2")}


def test_raw_round_trip():
    raw = {1: {Interest("event/*")}, 2: {Interest("event/**/b2"), Interest("x")}}
    interest_map = InterestMap.from_raw(raw)
    assert interest_map.to_raw() == raw
    assert interest_map.find(Subject("event/hello/avatar/b2")) == {2}
    assert interest_map.find(Subject("event/hello")) == {1}
    rebuilt = InterestMap.from_raw(interest_map.to_raw())
    assert rebuilt.find(Subject("x")) == {2}