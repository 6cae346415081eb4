#!/usr/bin/env python
"""
Tests for the integer action encoding.
"""
import unittest

from hexaequo_ai.core.actions import Move, PlaceDisc, PlaceRing, PlaceTile
from hexaequo_ai.core.board import Position
from hexaequo_ai.core.codec import ActionCodec, DEFAULT_CODEC, decode_action, encode_action
from hexaequo_ai.core.constants import ACTION_SPACE_SIZE, HEX_DIRECTIONS
from hexaequo_ai.core.exceptions import UnknownDirectionError
from hexaequo_ai.core.game import GameState


class TestActionCodec(unittest.TestCase):
    """Test case for ActionCodec."""

    def test_size(self):
        self.assertEqual(ACTION_SPACE_SIZE, 900)
        self.assertEqual(len(DEFAULT_CODEC), 900)
        self.assertEqual(ActionCodec(4).size, 3 * 16 + 16 * 6)

    def test_known_indices(self):
        self.assertEqual(encode_action(PlaceTile(Position(5, 3))), 53)
        self.assertEqual(encode_action(PlaceDisc(Position(2, 7))), 127)
        self.assertEqual(encode_action(PlaceRing(Position(8, 1))), 281)
        self.assertEqual(encode_action(Move(Position(4, 5), Position(3, 5))), 570)
        self.assertEqual(encode_action(Move(Position(0, 0), Position(0, 1))), 302)

    def test_decode(self):
        self.assertEqual(decode_action(0), PlaceTile(Position(0, 0)))
        self.assertEqual(decode_action(127), PlaceDisc(Position(2, 7)))
        self.assertEqual(decode_action(299), PlaceRing(Position(9, 9)))
        self.assertEqual(decode_action(570), Move(Position(4, 5), Position(3, 5)))
        self.assertEqual(decode_action(899), Move(Position(9, 9), Position(9, 8)))

    def test_every_direction_decodes_to_a_step(self):
        origin = Position(4, 4)
        base = 300 + 44 * 6
        for direction, (d_row, d_col) in enumerate(HEX_DIRECTIONS):
            move = decode_action(base + direction)
            self.assertEqual(move, Move(origin, origin.offset(d_row, d_col)))
            self.assertEqual(encode_action(move), base + direction)

    def test_legal_encodable_actions_round_trip(self):
        state = GameState.initial()
        indices = set()
        for action in state.legal_actions():
            index = encode_action(action)
            self.assertEqual(decode_action(index), action)
            indices.add(index)
        self.assertEqual(len(indices), len(state.legal_actions()))

    def test_jumps_and_hops_have_no_index(self):
        jump = Move(Position(5, 1), Position(5, 3))
        hop = Move(Position(5, 1), Position(3, 2))
        for move in (jump, hop):
            with self.assertRaises(UnknownDirectionError):
                encode_action(move)
            self.assertIsNone(DEFAULT_CODEC.try_encode(move))

    def test_out_of_range(self):
        with self.assertRaises(ValueError):
            decode_action(-1)
        with self.assertRaises(ValueError):
            decode_action(900)
        with self.assertRaises(ValueError):
            encode_action(PlaceTile(Position(10, 0)))

    def test_invalid_board_size(self):
        with self.assertRaises(ValueError):
            ActionCodec(0)


if __name__ == "__main__":
    unittest.main()
