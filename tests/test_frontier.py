"""Tests for the deduplicated crawl frontier."""

import threading

from matchgraph.continuous.frontier import Frontier


def test_enqueue_is_idempotent_and_fifo():
    frontier = Frontier(["a", "b"])
    assert frontier.enqueue("a") is False
    assert frontier.enqueue("c") is True
    assert len(frontier) == 3
    assert [frontier.dequeue() for _ in range(3)] == ["a", "b", "c"]
    assert frontier.dequeue() is None


def test_seed_skips_duplicates_within_batch():
    frontier = Frontier()
    assert frontier.seed(["x", "y", "x", "z", "y"]) == 3
    assert frontier.size() == 3
    assert "x" in frontier
    assert "w" not in frontier


def test_in_flight_id_cannot_be_enqueued_again():
    frontier = Frontier(["p1"])
    assert frontier.dequeue() == "p1"
    assert "p1" not in frontier
    assert frontier.in_flight() == 1
    assert frontier.enqueue("p1") is False
    assert len(frontier) == 0

    frontier.complete("p1")
    assert frontier.in_flight() == 0
    assert frontier.enqueue("p1") is True


def test_requeue_returns_id_to_tail():
    frontier = Frontier(["a", "b"])
    assert frontier.dequeue() == "a"
    assert frontier.requeue("a") is True
    assert frontier.in_flight() == 0
    assert [frontier.dequeue(), frontier.dequeue()] == ["b", "a"]


def test_empty_frontier_is_falsy():
    frontier = Frontier()
    assert not frontier
    frontier.enqueue("a")
    assert frontier


def test_concurrent_enqueue_never_hands_out_an_id_twice():
    frontier = Frontier()
    ids = [f"player-{i}" for i in range(1000)]
    start = threading.Barrier(9)
    dequeued = []

    def producer():
        start.wait()
        for player_id in ids:
            frontier.enqueue(player_id)

    threads = [threading.Thread(target=producer) for _ in range(8)]
    for t in threads:
        t.start()
    start.wait()

    while any(t.is_alive() for t in threads) or frontier:
        player_id = frontier.dequeue()
        if player_id is not None:
            dequeued.append(player_id)
    for t in threads:
        t.join()

    assert len(dequeued) == len(ids)
    assert sorted(dequeued) == sorted(ids)
    assert frontier.in_flight() == len(ids)
