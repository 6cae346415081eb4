#!/usr/bin/env python
"""
Test script for Hexaequo self-play learning components.

This script tests the core functionality of the learning system:
1. Board encoding and the policy/value network
2. The network evaluator as seen by the search
3. Replay buffer, update step and training metrics
4. Self-play games, checkpoints and evaluation matches

This is a lightweight test to verify system integration, not performance.
"""
import os
import shutil
import tempfile
import unittest
from dataclasses import replace

import numpy as np
import torch

from hexaequo_ai.core.actions import PlaceTile
from hexaequo_ai.core.board import Position
from hexaequo_ai.core.constants import ACTION_SPACE_SIZE, BOARD_SIZE, Color
from hexaequo_ai.core.game import GameState
from hexaequo_ai.mcts.config import MCTSConfig, SearchBudget
from hexaequo_ai.mcts.evaluator import validate_evaluation
from hexaequo_ai.mcts.search import run_search

from hexaequo_ai.rl.config import NetworkConfig, TrainingConfig
from hexaequo_ai.rl.agents import RandomAgent, create_network_agent, play_match
from hexaequo_ai.rl.models import (
    NUM_PLANES, HexaequoNetwork, NetworkEvaluator, encode_state, encode_states
)
from hexaequo_ai.rl.training import (
    GameRecord, ReplayBuffer, SelfPlayTrainer, TrainingExample, TrainingMetrics,
    load_model, play_self_play_game, sample_action, save_model, set_seed, train_step
)


def small_network():
    return HexaequoNetwork(NetworkConfig(filters=8, conv_layers=1, value_hidden=16))


def make_record(n_examples, winner=None, length=None):
    examples = [
        TrainingExample(
            planes=np.zeros((NUM_PLANES, BOARD_SIZE, BOARD_SIZE), dtype=np.float32),
            policy=np.full(ACTION_SPACE_SIZE, 1.0 / ACTION_SPACE_SIZE),
            value=1.0 if i % 2 == 0 else -1.0,
        )
        for i in range(n_examples)
    ]
    return GameRecord(examples=examples, winner=winner, length=length or n_examples)


class TestRLComponents(unittest.TestCase):
    """Test case for the learning components."""

    def setUp(self):
        """Set up test fixtures."""
        set_seed(42)
        self.temp_dir = tempfile.mkdtemp(prefix="hexaequo_test_")
        self.network = small_network()
        self.training_config = TrainingConfig(
            num_games=2,
            max_game_length=8,
            mcts=MCTSConfig(budget=SearchBudget(max_simulations=4), add_root_noise=True, seed=1),
            min_games_before_training=1,
            batch_size=4,
            save_interval=1,
            log_dir=os.path.join(self.temp_dir, "runs"),
            checkpoint_dir=os.path.join(self.temp_dir, "checkpoints"),
            use_tensorboard=False,
            seed=42,
        )

    def tearDown(self):
        """Tear down test fixtures."""
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_encode_state(self):
        state = GameState.initial()
        planes = encode_state(state)
        self.assertEqual(planes.shape, (NUM_PLANES, BOARD_SIZE, BOARD_SIZE))
        self.assertEqual(planes.dtype, np.float32)

        # Black to move: own tiles on row 4, own disc on F6, enemy disc on E5
        self.assertEqual(planes[0, 4, 4], 1.0)
        self.assertEqual(planes[1, 5, 4], 1.0)
        self.assertEqual(planes[2, 4, 5], 1.0)
        self.assertEqual(planes[3, 5, 4], 1.0)
        self.assertEqual(planes[2].sum(), 1.0)
        self.assertTrue(np.all(planes[7] == 1.0))
        self.assertAlmostEqual(float(planes[8, 0, 0]), 7 / 9)

        after = state.apply_action(PlaceTile(Position(3, 4)))
        swapped = encode_state(after)
        self.assertEqual(swapped[1, 3, 4], 1.0)
        self.assertTrue(np.all(swapped[7] == 0.0))

    def test_network_shapes(self):
        batch = encode_states([GameState.initial(), GameState.initial()])
        logits, values = self.network(batch)
        self.assertEqual(logits.shape, (2, ACTION_SPACE_SIZE))
        self.assertEqual(values.shape, (2,))
        self.assertTrue(torch.all(values.abs() <= 1.0))

    def test_network_evaluator(self):
        evaluator = NetworkEvaluator(self.network)
        evaluation = validate_evaluation(evaluator.evaluate(GameState.initial()))
        self.assertAlmostEqual(float(evaluation.policy.sum()), 1.0, places=4)
        self.assertLessEqual(abs(evaluation.value), 1.0)

        root, stats = run_search(GameState.initial(), evaluator,
                                 MCTSConfig(budget=SearchBudget(max_simulations=5)))
        self.assertEqual(stats["simulations"], 5)
        self.assertIn(root.best_action(), GameState.initial().legal_actions())

    def test_replay_buffer(self):
        buffer = ReplayBuffer(capacity=2)
        first, second, third = make_record(3), make_record(4), make_record(5)
        for record in (first, second, third):
            buffer.add(record)

        self.assertEqual(len(buffer), 2)
        self.assertFalse(any(record is first for record in buffer.buffer))
        self.assertEqual(buffer.num_examples, 9)

        batch = buffer.sample(6)
        self.assertEqual(batch["planes"].shape, (6, NUM_PLANES, BOARD_SIZE, BOARD_SIZE))
        self.assertEqual(batch["policy"].shape, (6, ACTION_SPACE_SIZE))
        self.assertEqual(batch["value"].shape, (6,))

        path = os.path.join(self.temp_dir, "buffer.pkl")
        buffer.save(path)
        restored = ReplayBuffer(capacity=2)
        restored.load(path)
        self.assertEqual(restored.num_examples, 9)

        buffer.add(make_record(6))
        restored.add(make_record(6))
        self.assertEqual([len(r.examples) for r in restored.games()],
                         [len(r.examples) for r in buffer.games()])
        self.assertEqual([len(r.examples) for r in buffer.games()], [5, 6])

        with self.assertRaises(ValueError):
            ReplayBuffer().sample(4)

    def test_train_step(self):
        buffer = ReplayBuffer()
        buffer.add(make_record(8))
        optimizer = torch.optim.Adam(self.network.parameters(), lr=1e-3)
        before = [p.detach().clone() for p in self.network.parameters()]

        losses = train_step(self.network, optimizer, buffer.sample(8))
        for key in ("loss", "policy_loss", "value_loss"):
            self.assertIn(key, losses)
            self.assertTrue(np.isfinite(losses[key]))
        changed = any(not torch.equal(a, b) for a, b in zip(before, self.network.parameters()))
        self.assertTrue(changed)

    def test_self_play_game(self):
        record = play_self_play_game(NetworkEvaluator(self.network), self.training_config,
                                     np.random.default_rng(0))
        self.assertLessEqual(record.length, 8)
        self.assertGreater(len(record.examples), 0)
        for example in record.examples:
            self.assertEqual(example.planes.shape, (NUM_PLANES, BOARD_SIZE, BOARD_SIZE))
            self.assertAlmostEqual(float(example.policy.sum()), 1.0)
            if record.winner is None:
                self.assertEqual(example.value, 0.0)

    def test_sample_action(self):
        root, _ = run_search(GameState.initial(), NetworkEvaluator(self.network),
                             MCTSConfig(budget=SearchBudget(max_simulations=20)))
        self.assertEqual(sample_action(root, 0), root.best_action())
        sampled = sample_action(root, 1.0, np.random.default_rng(3))
        self.assertIn(sampled, root.children)

    def test_trainer(self):
        trainer = SelfPlayTrainer(self.network, self.training_config)
        metrics = trainer.train()

        self.assertEqual(metrics.games_played, 2)
        self.assertEqual(metrics.white_wins + metrics.black_wins + metrics.draws, 2)
        self.assertEqual(metrics.updates, len(metrics.policy_losses))
        final = os.path.join(self.training_config.checkpoint_dir, "hexaequo_final.pt")
        self.assertTrue(os.path.exists(final))
        self.assertTrue(os.path.exists(f"{final}_extra.json"))

        resumed = SelfPlayTrainer(small_network(), self.training_config)
        resumed.load_checkpoint(final)
        self.assertEqual(resumed.metrics.games_played, 2)

    def test_trainer_can_train_again_before_close(self):
        config = replace(self.training_config, num_games=1, use_tensorboard=True)
        trainer = SelfPlayTrainer(small_network(), config)
        trainer.train()
        self.assertIsNotNone(trainer.writer)
        trainer.train()
        self.assertEqual(trainer.metrics.games_played, 2)

        trainer.close()
        self.assertIsNone(trainer.writer)
        trainer.close()

    def test_save_load_model(self):
        path = os.path.join(self.temp_dir, "model.pt")
        save_model(self.network, path, extra_data={"note": "test"})
        self.assertTrue(os.path.exists(path))

        loaded, extra = load_model(path)
        self.assertEqual(extra, {"note": "test"})
        self.assertEqual(loaded.config, self.network.config)
        for p1, p2 in zip(self.network.parameters(), loaded.parameters()):
            self.assertTrue(torch.allclose(p1, p2))

    def test_training_metrics(self):
        metrics = TrainingMetrics()
        record = make_record(2, winner=Color.BLACK, length=40)
        record.captured_discs = {Color.BLACK: 6, Color.WHITE: 2}
        record.captured_rings = {Color.BLACK: 0, Color.WHITE: 1}
        metrics.record_game(record)
        metrics.record_game(make_record(2, winner=None, length=20))

        self.assertEqual(metrics.win_rates(), {"white": 0.0, "black": 0.5, "draw": 0.5})
        self.assertAlmostEqual(metrics.capture_rates()["discs"], 8 / 24)
        self.assertAlmostEqual(metrics.capture_rates()["rings"], 1 / 12)
        self.assertEqual(metrics.average_game_length(), 30.0)
        self.assertEqual(TrainingMetrics.from_dict(metrics.to_dict()), metrics)

    def test_training_config(self):
        path = os.path.join(self.temp_dir, "config.json")
        self.training_config.save(path)
        restored = TrainingConfig.load(path)
        self.assertEqual(restored, self.training_config)
        self.assertEqual(restored.temperature_for(0), 1.0)
        self.assertEqual(restored.temperature_for(30), 0.5)

        with self.assertRaises(ValueError):
            TrainingConfig(batch_size=0)
        with self.assertRaises(ValueError):
            TrainingConfig(device="tpu")
        with self.assertRaises(ValueError):
            NetworkConfig(dropout_rate=1.0)

    def test_agents_and_match(self):
        random_agent = RandomAgent(seed=0)
        state = GameState.initial()
        self.assertIn(random_agent.select_action(state), state.legal_actions())

        network_agent = create_network_agent(
            self.network, MCTSConfig(budget=SearchBudget(max_simulations=3))
        )
        results = play_match(network_agent, random_agent, num_games=2, max_turns=6)
        self.assertEqual(results["games"], 2)
        self.assertEqual(results["a_wins"] + results["b_wins"] + results["draws"], 2)
        self.assertGreaterEqual(results["a_win_rate"], 0.0)


if __name__ == "__main__":
    unittest.main()
