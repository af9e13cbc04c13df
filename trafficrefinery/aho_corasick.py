"""Aho-Corasick automaton used to find the first dictionary match in a string."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field

ROOT = 0


@dataclass
class State:
    """A node of the automaton's trie."""

    id: int
    char: str
    next_states: dict[str, int] = field(default_factory=dict)


class AhoCorasick:
    """Multi-pattern matcher.

    Patterns are added with :meth:`add_string`. :meth:`failure` must then be
    called once to build the failure links before :meth:`first_match` is used.
    """

    def __init__(self) -> None:
        self.curr_state = ROOT
        self.state_map: dict[int, State] = {ROOT: State(ROOT, "\0")}
        self.output_map: dict[int, list[str]] = {}
        self.failure_map: dict[int, int] = {}
        self.done_state = False

    def go_to(self, state_id: int, char: str) -> int | None:
        """Return the state reached from ``state_id`` on ``char``, or None."""
        state = self.state_map.get(state_id)
        if state is None:
            return None
        nxt = state.next_states.get(char)
        if nxt is not None:
            return nxt
        if state_id == ROOT and self.done_state:
            return ROOT
        return None

    def add_string(self, text: str, output: str) -> None:
        """Add ``text`` to the trie, reporting ``output`` when it is matched."""
        current = ROOT
        for char in text:
            if self.go_to(current, char) is None:
                self.curr_state += 1
                new_state = State(self.curr_state, char)
                self.state_map[new_state.id] = new_state
                self.state_map[current].next_states[char] = new_state.id
            current = self.state_map[current].next_states[char]
        self.output_map[current] = [output]

    def failure(self) -> None:
        """Build the failure links and merge outputs along them."""
        self.done_state = True
        self.failure_map = {}
        queue: deque[int] = deque()

        for state_id in self.state_map[ROOT].next_states.values():
            self.failure_map[state_id] = ROOT
            queue.append(state_id)

        while queue:
            state_id = queue.popleft()
            for char, next_id in self.state_map[state_id].next_states.items():
                queue.append(next_id)
                fallback = self.failure_map[state_id]
                while (target := self.go_to(fallback, char)) is None:
                    fallback = self.failure_map.get(fallback, ROOT)
                self.failure_map[next_id] = target
                self.output_map.setdefault(next_id, []).extend(
                    self.output_map.get(target, [])
                )

    def first_match(self, text: str) -> list[str]:
        """Return the outputs of the first position in ``text`` with a match.

        Returns an empty list when nothing matches.
        """
        if not self.done_state:
            raise RuntimeError("failure() must be called before matching")
        state_id = ROOT
        for char in text:
            while (nxt := self.go_to(state_id, char)) is None:
                state_id = self.failure_map.get(state_id, ROOT)
            state_id = nxt
            outputs = self.output_map.get(state_id)
            if outputs:
                return list(outputs)
        return []