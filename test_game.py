#!/usr/bin/env python
"""
Tests for the Hexaequo rules engine.

This script checks the game state against hand-built positions:
1. Legal action generation from the starting position
2. Captures by disc jumps, chain captures and ring hops
3. Ring placement cost, repetition limit and victory conditions
4. Serialization and the Game manager
"""
import os
import random
import tempfile
import unittest

from hexaequo_ai.core.actions import (
    Move, PlaceDisc, PlaceRing, PlaceTile, create_action_from_dict, parse_action
)
from hexaequo_ai.core.board import Board, Piece, Position
from hexaequo_ai.core.constants import (
    Color, PieceKind, DISCS_PER_COLOR, RINGS_PER_COLOR, TILES_PER_COLOR
)
from hexaequo_ai.core.exceptions import IllegalActionError
from hexaequo_ai.core.game import (
    Game, GameResult, GameState, RewardShaping, random_agent, simulate_random_game
)
from hexaequo_ai.core.inventory import Inventory


def make_state(tiles, pieces, side_to_move=Color.BLACK, inventories=None):
    """Build a state from {(row, col): color} tiles and {(row, col): (color, kind)} pieces."""
    board = Board()
    for (row, col), color in tiles.items():
        board.place_tile(Position(row, col), color)
    for (row, col), (color, kind) in pieces.items():
        board.place_piece(Position(row, col), Piece(color, kind))
    if inventories is None:
        inventories = {Color.WHITE: Inventory(), Color.BLACK: Inventory()}
    return GameState(board=board, inventories=inventories, side_to_move=side_to_move)


def chain_state():
    """Black disc on (5, 1) facing white discs on (5, 2) and (5, 4) along row 5."""
    tiles = {(5, col): (Color.BLACK if col % 2 else Color.WHITE) for col in range(1, 6)}
    pieces = {
        (5, 1): (Color.BLACK, PieceKind.DISC),
        (5, 2): (Color.WHITE, PieceKind.DISC),
        (5, 4): (Color.WHITE, PieceKind.DISC),
    }
    return make_state(tiles, pieces)


class TestInitialPosition(unittest.TestCase):
    """Test case for the starting position."""

    def setUp(self):
        self.state = GameState.initial()

    def test_setup(self):
        self.assertEqual(self.state.side_to_move, Color.BLACK)
        self.assertEqual(self.state.board.tile_count, 4)
        self.assertEqual(self.state.board.piece_at(Position(4, 5)), Piece(Color.BLACK, PieceKind.DISC))
        self.assertEqual(self.state.board.piece_at(Position(5, 4)), Piece(Color.WHITE, PieceKind.DISC))
        for color in Color:
            inventory = self.state.inventory(color)
            self.assertEqual(inventory.tiles, TILES_PER_COLOR - 2)
            self.assertEqual(inventory.discs, DISCS_PER_COLOR - 1)
            self.assertEqual(inventory.rings, RINGS_PER_COLOR)
        self.assertFalse(self.state.is_terminal())
        self.assertEqual(self.state.result, GameResult.IN_PROGRESS)

    def test_legal_actions(self):
        actions = self.state.legal_actions()
        expected_tiles = [
            (3, 4), (3, 5), (3, 6), (4, 3), (4, 6),
            (5, 3), (5, 6), (6, 3), (6, 4), (6, 5),
        ]
        expected = [PlaceTile(Position(*cell)) for cell in expected_tiles]
        expected.append(PlaceDisc(Position(4, 4)))
        expected.append(Move(Position(4, 5), Position(5, 5)))
        expected.append(Move(Position(4, 5), Position(4, 4)))

        self.assertEqual(len(actions), 13)
        self.assertEqual(list(actions), expected)

    def test_legal_actions_idempotent(self):
        first = self.state.legal_actions()
        second = self.state.legal_actions()
        self.assertEqual(first, second)
        self.assertEqual(GameState.initial().legal_actions(), first)

    def test_no_ring_without_captured_disc(self):
        rings = [a for a in self.state.legal_actions() if isinstance(a, PlaceRing)]
        self.assertEqual(rings, [])

    def test_apply_leaves_original_unchanged(self):
        before = self.state.to_dict()
        after = self.state.apply_action(PlaceTile(Position(3, 4)))

        self.assertEqual(self.state.to_dict(), before)
        self.assertEqual(after.board.tile_at(Position(3, 4)), Color.BLACK)
        self.assertEqual(after.inventory(Color.BLACK).tiles, TILES_PER_COLOR - 3)
        self.assertEqual(after.side_to_move, Color.WHITE)
        self.assertEqual(after.ply, 1)

    def test_illegal_action_raises(self):
        with self.assertRaises(IllegalActionError):
            self.state.apply_action(PlaceTile(Position(0, 0)))
        with self.assertRaises(IllegalActionError):
            self.state.apply_action(Move(Position(5, 4), Position(5, 5)))


class TestPlacementRules(unittest.TestCase):
    """Test case for tile and piece placement."""

    def test_free_tile_placement_on_small_board(self):
        state = make_state({(0, 0): Color.BLACK}, {})
        tiles = [a for a in state.legal_actions() if isinstance(a, PlaceTile)]
        self.assertEqual(len(tiles), 99)

    def test_tiles_must_touch_after_four(self):
        state = GameState.initial()
        for action in state.legal_actions():
            if isinstance(action, PlaceTile):
                self.assertTrue(state.board.is_adjacent_to_tile(action.position))

    def test_ring_placement_cost(self):
        initial = GameState.initial()
        inventories = {
            Color.BLACK: Inventory(tiles=7, discs=5, rings=3, captured_discs=1),
            Color.WHITE: Inventory(tiles=7, discs=5, rings=3),
        }
        state = GameState(board=initial.board.copy(), inventories=inventories)
        ring = PlaceRing(Position(4, 4))
        self.assertIn(ring, state.legal_actions())

        after = state.apply_action(ring)
        self.assertEqual(after.board.piece_at(Position(4, 4)), Piece(Color.BLACK, PieceKind.RING))
        self.assertEqual(after.inventory(Color.BLACK).rings, 2)
        self.assertEqual(after.inventory(Color.BLACK).captured_discs, 0)
        self.assertEqual(after.inventory(Color.WHITE).discs, 6)

    def test_disc_only_on_own_vacant_tile(self):
        state = GameState.initial()
        discs = [a for a in state.legal_actions() if isinstance(a, PlaceDisc)]
        self.assertEqual(discs, [PlaceDisc(Position(4, 4))])


class TestCaptures(unittest.TestCase):
    """Test case for jumps, chain captures and ring hops."""

    def test_jump_captures_and_continues(self):
        state = chain_state()
        first = Move(Position(5, 1), Position(5, 3))
        self.assertIn(first, state.legal_actions())

        state = state.apply_action(first)
        self.assertIsNone(state.board.piece_at(Position(5, 2)))
        self.assertEqual(state.inventory(Color.BLACK).captured_discs, 1)
        self.assertEqual(state.side_to_move, Color.BLACK)
        self.assertEqual(state.must_continue_jump_from, Position(5, 3))
        self.assertEqual(state.legal_actions(), (Move(Position(5, 3), Position(5, 5)),))

        state = state.apply_action(Move(Position(5, 3), Position(5, 5)))
        self.assertEqual(state.inventory(Color.BLACK).captured_discs, 2)
        self.assertIsNone(state.must_continue_jump_from)
        self.assertEqual(state.side_to_move, Color.WHITE)
        self.assertEqual(state.board.pieces_of(Color.WHITE), [])

    def test_jump_over_friendly_piece_does_not_capture(self):
        tiles = {(5, 1): Color.BLACK, (5, 2): Color.BLACK, (5, 3): Color.BLACK}
        pieces = {(5, 1): (Color.BLACK, PieceKind.DISC), (5, 2): (Color.BLACK, PieceKind.DISC)}
        state = make_state(tiles, pieces)

        state = state.apply_action(Move(Position(5, 1), Position(5, 3)))
        self.assertEqual(state.board.count_pieces(Color.BLACK, PieceKind.DISC), 2)
        self.assertEqual(state.inventory(Color.BLACK).captured_discs, 0)
        self.assertEqual(state.side_to_move, Color.WHITE)

    def test_ring_hop_captures(self):
        tiles = {(5, 1): Color.BLACK, (5, 2): Color.WHITE, (5, 3): Color.WHITE}
        pieces = {(5, 1): (Color.BLACK, PieceKind.RING), (5, 3): (Color.WHITE, PieceKind.DISC)}
        state = make_state(tiles, pieces)
        hop = Move(Position(5, 1), Position(5, 3))
        self.assertIn(hop, state.legal_actions())
        self.assertNotIn(Move(Position(5, 1), Position(5, 2)), state.legal_actions())

        state = state.apply_action(hop)
        self.assertEqual(state.board.piece_at(Position(5, 3)), Piece(Color.BLACK, PieceKind.RING))
        self.assertIsNone(state.board.piece_at(Position(5, 1)))
        self.assertEqual(state.inventory(Color.BLACK).captured_discs, 1)
        self.assertIsNone(state.must_continue_jump_from)
        self.assertEqual(state.side_to_move, Color.WHITE)

    def test_ring_cannot_land_on_friendly_piece(self):
        tiles = {(5, 1): Color.BLACK, (5, 3): Color.BLACK}
        pieces = {(5, 1): (Color.BLACK, PieceKind.RING), (5, 3): (Color.BLACK, PieceKind.DISC)}
        state = make_state(tiles, pieces)
        self.assertNotIn(Move(Position(5, 1), Position(5, 3)), state.legal_actions())

    def test_capture_resets_move_history(self):
        state = chain_state()
        self.assertEqual(state.move_history, ())
        state = state.apply_action(Move(Position(5, 1), Position(5, 3)))
        self.assertEqual(state.move_history, ())


class TestGameEnd(unittest.TestCase):
    """Test case for victory, draws and the repetition limit."""

    def test_disc_capture_victory(self):
        initial = GameState.initial()
        inventories = {
            Color.BLACK: Inventory(captured_discs=6),
            Color.WHITE: Inventory(),
        }
        state = GameState(board=initial.board.copy(), inventories=inventories)

        self.assertTrue(state.is_terminal())
        self.assertEqual(state.legal_actions(), ())
        self.assertEqual(state.winner(), Color.BLACK)
        self.assertEqual(state.result, GameResult.WINNER)
        self.assertEqual(state.reward(Color.BLACK), 1.0)
        self.assertEqual(state.reward(Color.WHITE), -1.0)
        with self.assertRaises(IllegalActionError):
            state.apply_action(PlaceTile(Position(3, 4)))

    def test_ring_capture_victory(self):
        inventories = {Color.BLACK: Inventory(), Color.WHITE: Inventory(captured_rings=3)}
        state = GameState(board=Board(), inventories=inventories)
        self.assertEqual(state.winner(), Color.WHITE)

    def test_no_legal_actions_is_draw(self):
        inventories = {
            Color.BLACK: Inventory(tiles=0, discs=0, rings=0),
            Color.WHITE: Inventory(),
        }
        state = GameState(board=Board(), inventories=inventories)

        self.assertFalse(state.has_legal_moves(Color.BLACK))
        self.assertTrue(state.has_legal_moves(Color.WHITE))
        self.assertTrue(state.is_terminal())
        self.assertIsNone(state.winner())
        self.assertEqual(state.result, GameResult.DRAW)
        self.assertEqual(state.reward(Color.BLACK), 0.0)

    def test_repetition_limit(self):
        cycle = [
            Move(Position(4, 5), Position(4, 4)),
            Move(Position(5, 4), Position(5, 5)),
            Move(Position(4, 4), Position(4, 5)),
            Move(Position(5, 5), Position(5, 4)),
        ]
        state = GameState.initial()
        for _ in range(3):
            for move in cycle:
                state = state.apply_action(move)

        self.assertEqual(len(state.move_history), 12)
        self.assertNotIn(cycle[0], state.legal_actions())
        with self.assertRaises(IllegalActionError):
            state.apply_action(cycle[0])

    def test_placement_resets_move_history(self):
        state = GameState.initial().apply_action(Move(Position(4, 5), Position(4, 4)))
        self.assertEqual(len(state.move_history), 1)
        state = state.apply_action(PlaceTile(Position(6, 3)))
        self.assertEqual(state.move_history, ())

    def test_shaped_reward(self):
        inventories = {
            Color.BLACK: Inventory(captured_discs=2, captured_rings=1),
            Color.WHITE: Inventory(captured_discs=1),
        }
        state = GameState(board=GameState.initial().board.copy(), inventories=inventories)
        shaping = RewardShaping()

        self.assertAlmostEqual(state.shaped_reward(Color.BLACK), 0.1 + 0.2)
        self.assertAlmostEqual(state.shaped_reward(Color.WHITE), -0.3)
        self.assertEqual(state.reward(Color.BLACK), 0.0)
        self.assertAlmostEqual(state.reward(Color.BLACK, shaping), 0.3)


class TestConservation(unittest.TestCase):
    """Pieces are never created or destroyed during random games."""

    def assert_conserved(self, state):
        for color in Color:
            own = state.inventory(color)
            enemy = state.inventory(color.opponent)
            board = state.board
            self.assertEqual(own.tiles + board.count_tiles(color), TILES_PER_COLOR)
            self.assertEqual(
                own.discs + board.count_pieces(color, PieceKind.DISC) + enemy.captured_discs,
                DISCS_PER_COLOR,
            )
            self.assertEqual(
                own.rings + board.count_pieces(color, PieceKind.RING) + enemy.captured_rings,
                RINGS_PER_COLOR,
            )
        for pos in state.board.pieces:
            self.assertTrue(state.board.has_tile(pos))

    def test_random_games(self):
        rng = random.Random(7)
        for _ in range(5):
            state = GameState.initial()
            self.assert_conserved(state)
            for _ in range(150):
                if state.is_terminal():
                    break
                state = state.apply_action(rng.choice(state.legal_actions()))
                self.assert_conserved(state)


class TestSerialization(unittest.TestCase):
    """Test case for dictionaries, JSON and notation."""

    def test_state_round_trip(self):
        state = chain_state().apply_action(Move(Position(5, 1), Position(5, 3)))
        restored = GameState.from_json(state.to_json())

        self.assertEqual(restored.board, state.board)
        self.assertEqual(restored.inventories, state.inventories)
        self.assertEqual(restored.side_to_move, state.side_to_move)
        self.assertEqual(restored.must_continue_jump_from, Position(5, 3))
        self.assertEqual(restored.legal_actions(), state.legal_actions())

    def test_states_compare_by_value_and_are_unhashable(self):
        self.assertEqual(GameState.initial(), GameState.initial())
        with self.assertRaises(TypeError):
            hash(GameState.initial())

    def test_action_dict(self):
        move = Move(Position(4, 5), Position(3, 5))
        self.assertEqual(create_action_from_dict(move.to_dict()), move)
        tile = PlaceTile(Position(2, 7))
        self.assertEqual(create_action_from_dict(tile.to_dict()), tile)

    def test_notation(self):
        self.assertEqual(Position(4, 4).notation, "E6")
        self.assertEqual(Position.from_notation("e6"), Position(4, 4))
        self.assertEqual(parse_action("tile E6"), PlaceTile(Position(4, 4)))
        self.assertEqual(parse_action("ring A1"), PlaceRing(Position(9, 0)))
        self.assertEqual(parse_action("move F6 F5"), Move(Position(4, 5), Position(5, 5)))
        self.assertEqual(parse_action("F6-E6"), Move(Position(4, 5), Position(4, 4)))
        with self.assertRaises(ValueError):
            parse_action("fly E6")
        with self.assertRaises(ValueError):
            Position.from_notation("Z9")


class TestGameManager(unittest.TestCase):
    """Test case for the Game class."""

    def test_step_and_history(self):
        game = Game()
        state, done = game.step(PlaceDisc(Position(4, 4)))
        self.assertFalse(done)
        self.assertEqual(game.history, [(Color.BLACK, PlaceDisc(Position(4, 4)))])
        self.assertEqual(state.side_to_move, Color.WHITE)

        with self.assertRaises(ValueError):
            game.step()

    def test_run_game_requires_agents(self):
        game = Game()
        game.register_agent(Color.BLACK, random_agent)
        with self.assertRaises(ValueError):
            game.run_game(max_turns=5)

    def test_save_and_load(self):
        random.seed(3)
        game = Game()
        for color in Color:
            game.register_agent(color, random_agent)
        game.run_game(max_turns=20)

        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "game.json")
            game.save_game(path)
            loaded = Game.load_game(path)

        self.assertEqual(loaded.history, game.history)
        self.assertEqual(loaded.state.board, game.state.board)
        self.assertEqual(loaded.state.inventories, game.state.inventories)
        self.assertEqual(loaded.state.side_to_move, game.state.side_to_move)

    def test_statistics(self):
        game = Game()
        game.step(PlaceTile(Position(3, 4)))
        stats = game.get_game_statistics()
        self.assertEqual(stats["actions"], 1)
        self.assertEqual(stats["result"], "IN_PROGRESS")
        self.assertEqual(stats["black_captured_discs"], 0)

    def test_simulate_random_game(self):
        state, winner = simulate_random_game(max_turns=60, random_seed=11)
        self.assertLessEqual(state.ply, 60)
        if winner is not None:
            self.assertTrue(state.is_terminal())


if __name__ == "__main__":
    unittest.main()
