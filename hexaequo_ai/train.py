"""
Training script for the Hexaequo policy/value network.

This script provides the ``hexaequo-train`` command-line interface. It trains
a network by self-play, saves checkpoints and loss plots, and finally plays a
short evaluation match against a random agent.

Example usage:
    # Train with default settings
    hexaequo-train --games 200 --save-dir checkpoints

    # Continue training from a checkpoint
    hexaequo-train --load checkpoints/hexaequo_final.pt --games 100

    # Small, fast run with TensorBoard logging
    hexaequo-train --games 20 --simulations 25 --use-tensorboard
"""
import os
import sys
import argparse
import logging
from typing import Optional

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from hexaequo_ai.mcts.config import MCTSConfig, SearchBudget
from hexaequo_ai.rl.agents import RandomAgent, create_network_agent, play_match
from hexaequo_ai.rl.config import NetworkConfig, TrainingConfig
from hexaequo_ai.rl.training import SelfPlayTrainer, TrainingMetrics

console = Console()
logger = logging.getLogger("hexaequo_ai.train")


def parse_args(argv=None):
    """Parse command-line arguments for training configuration."""
    parser = argparse.ArgumentParser(description="Train a Hexaequo network by self-play")

    # Self-play configuration
    parser.add_argument("--games", type=int, default=100,
                        help="Number of self-play games")
    parser.add_argument("--simulations", type=int, default=50,
                        help="MCTS simulations per self-play move")
    parser.add_argument("--time-ms", type=float, default=500,
                        help="Wall-clock limit per self-play move in milliseconds")
    parser.add_argument("--max-game-length", type=int, default=100,
                        help="Actions after which a self-play game counts as a draw")
    parser.add_argument("--temperature", type=float, default=1.0,
                        help="Sampling temperature for the opening moves")

    # Optimization configuration
    parser.add_argument("--batch-size", type=int, default=32,
                        help="Examples per gradient step")
    parser.add_argument("--updates-per-game", type=int, default=1,
                        help="Gradient steps after each game")
    parser.add_argument("--lr", type=float, default=1e-3,
                        help="Learning rate")
    parser.add_argument("--replay-capacity", type=int, default=100,
                        help="Number of recent games kept for training")

    # Network configuration
    parser.add_argument("--filters", type=int, default=64,
                        help="Channels of each convolution")
    parser.add_argument("--conv-layers", type=int, default=2,
                        help="Number of convolution layers")

    # Saving and loading
    parser.add_argument("--save-dir", type=str, default="checkpoints",
                        help="Directory to save checkpoints and plots")
    parser.add_argument("--save-interval", type=int, default=10,
                        help="Save a checkpoint every N games")
    parser.add_argument("--load", type=str, default=None,
                        help="Path to a checkpoint to continue from")

    # Logging and evaluation
    parser.add_argument("--log-dir", type=str, default="runs",
                        help="Directory for TensorBoard logs")
    parser.add_argument("--use-tensorboard", action="store_true",
                        help="Use TensorBoard for logging")
    parser.add_argument("--eval-games", type=int, default=10,
                        help="Games of the final match against a random agent")
    parser.add_argument("--verbose", action="store_true",
                        help="Print debug output")

    # Miscellaneous
    parser.add_argument("--seed", type=int, default=None,
                        help="Random seed")
    parser.add_argument("--device", type=str, default="cpu",
                        help="Device to use (cpu or cuda)")

    return parser.parse_args(argv)


def create_training_config(args) -> TrainingConfig:
    """
    Create the training configuration from command-line arguments.

    Args:
        args: Command-line arguments

    Returns:
        Training configuration
    """
    mcts_config = MCTSConfig.self_play()
    mcts_config.budget = SearchBudget(
        max_simulations=args.simulations,
        max_time_ms=args.time_ms,
        min_simulations_before_clock_check=min(10, args.simulations),
    )
    mcts_config.seed = args.seed

    return TrainingConfig(
        num_games=args.games,
        max_game_length=args.max_game_length,
        temperature=args.temperature,
        mcts=mcts_config,
        replay_capacity=args.replay_capacity,
        batch_size=args.batch_size,
        updates_per_game=args.updates_per_game,
        learning_rate=args.lr,
        device=args.device,
        log_dir=args.log_dir,
        use_tensorboard=args.use_tensorboard,
        checkpoint_dir=args.save_dir,
        save_interval=args.save_interval,
        seed=args.seed,
    )


def visualize_training(metrics: TrainingMetrics, save_dir: str) -> None:
    """
    Save loss plots of a training run.

    Args:
        metrics: Metrics of the finished run
        save_dir: Directory to save plots to
    """
    if metrics.policy_losses:
        plt.figure(figsize=(10, 6))
        plt.plot(metrics.policy_losses)
        plt.title("Policy Loss")
        plt.xlabel("Update")
        plt.ylabel("Loss")
        plt.savefig(os.path.join(save_dir, "policy_loss.png"))
        plt.close()

    if metrics.value_losses:
        plt.figure(figsize=(10, 6))
        plt.plot(metrics.value_losses)
        plt.title("Value Loss")
        plt.xlabel("Update")
        plt.ylabel("Loss")
        plt.savefig(os.path.join(save_dir, "value_loss.png"))
        plt.close()


def summary_table(metrics: TrainingMetrics) -> Table:
    table = Table(title="Training summary")
    table.add_column("Metric")
    table.add_column("Value", justify="right")

    table.add_row("Games played", str(metrics.games_played))
    table.add_row("Updates", str(metrics.updates))
    table.add_row("Average length", f"{metrics.average_game_length():.1f}")
    for key, value in metrics.win_rates().items():
        table.add_row(f"Rate {key}", f"{value:.2%}")
    for key, value in metrics.capture_rates().items():
        table.add_row(f"Captured {key}", f"{value:.2%}")
    return table


def main(argv: Optional[list] = None) -> int:
    """Entry point of ``hexaequo-train``."""
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )

    try:
        config = create_training_config(args)
        network_config = NetworkConfig(filters=args.filters, conv_layers=args.conv_layers)
    except ValueError as e:
        logger.error("Invalid configuration: %s", e)
        return 2

    trainer = SelfPlayTrainer(config=config, network_config=network_config)
    if args.load is not None:
        trainer.load_checkpoint(args.load)
        logger.info("Continuing from %s (%d games played)", args.load, trainer.metrics.games_played)
    config.save(os.path.join(args.save_dir, "training_config.json"))

    logger.info("Training on %s for %d games", config.device, config.num_games)
    try:
        metrics = trainer.train()
    finally:
        trainer.close()

    console.print(summary_table(metrics))
    visualize_training(metrics, args.save_dir)

    if args.eval_games > 0:
        logger.info("Evaluating against a random agent...")
        agent = create_network_agent(
            trainer.network,
            MCTSConfig(budget=SearchBudget(max_simulations=args.simulations)),
            device=args.device,
        )
        results = play_match(agent, RandomAgent(seed=args.seed), num_games=args.eval_games,
                             max_turns=config.max_game_length)
        console.print(
            f"Network: {results['a_wins']} wins, random: {results['b_wins']} wins, "
            f"{results['draws']} draws (win rate {results['a_win_rate']:.2%})"
        )

    return 0


if __name__ == "__main__":
    sys.exit(main())
