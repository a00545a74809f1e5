from hailstorm.sequential_id_generator import SequentialIdGenerator


def test_generates_sequential_ids():
    gen = SequentialIdGenerator()
    assert gen.next_id() == 1
    assert gen.next_id() == 2
    assert gen.next_id() == 3


def test_reuses_released_ids():
    gen = SequentialIdGenerator()
    gen.next_id()
    b = gen.next_id()
    gen.next_id()
    gen.release_id(b)
    assert gen.next_id() == 2
    assert gen.next_id() == 4


def test_release_last_id_shrinks_counter():
    gen = SequentialIdGenerator()
    gen.next_id()
    gen.next_id()
    c = gen.next_id()
    gen.release_id(c)
    assert gen.next_id() == 3


def test_release_consecutive_tail_ids():
    gen = SequentialIdGenerator()
    gen.next_id()
    gen.next_id()
    gen.next_id()
    gen.release_id(2)
    gen.release_id(3)
    assert gen.next_id() == 2


def test_interleaved_release_and_generate():
    gen = SequentialIdGenerator()
    ids = [gen.next_id() for _ in range(5)]
    assert ids == [1, 2, 3, 4, 5]
    gen.release_id(2)
    gen.release_id(4)
    assert gen.next_id() == 2
    assert gen.next_id() == 4
    assert gen.next_id() == 6


def test_release_all_restarts_from_one():
    gen = SequentialIdGenerator()
    ids = [gen.next_id() for _ in range(4)]
    for ident in ids:
        gen.release_id(ident)
    assert [gen.next_id() for _ in range(3)] == [1, 2, 3]


def test_ids_are_unique_while_held():
    gen = SequentialIdGenerator()
    held = {gen.next_id() for _ in range(10)}
    for ident in (3, 7, 10):
        gen.release_id(ident)
        held.discard(ident)
    fresh = [gen.next_id() for _ in range(5)]
    assert len(set(fresh)) == 5
    assert not held & set(fresh)
    assert fresh == [3, 7, 10, 11, 12]