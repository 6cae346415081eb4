"""
Interactive Hexaequo game interface for playing against AI agents.

This module provides the ``hexaequo-play`` command-line interface for playing
Hexaequo against random, MCTS or network-guided MCTS agents, or for watching
two agents play each other.

Example usage:
    # Play black against an MCTS agent
    hexaequo-play --opponent mcts --simulations 400

    # Play against a trained network
    hexaequo-play --opponent network --model checkpoints/hexaequo_final.pt

    # Watch two MCTS agents
    hexaequo-play --watch --opponent mcts

Moves are typed as ``tile E6``, ``disc E6``, ``ring E6`` or ``move E6 F6``.
"""
import argparse
import logging
import sys
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.text import Text

from hexaequo_ai.core.actions import Action, parse_action
from hexaequo_ai.core.constants import Color, TILE_SYMBOLS
from hexaequo_ai.core.board import Position
from hexaequo_ai.core.exceptions import IllegalActionError
from hexaequo_ai.core.game import Game, GameState
from hexaequo_ai.mcts.agent import MCTSAgent
from hexaequo_ai.mcts.config import MCTSConfig, SearchBudget

console = Console()
logger = logging.getLogger("hexaequo_ai.play")

_STYLES = {Color.WHITE: "bold white", Color.BLACK: "bold red"}


def parse_args(argv=None):
    """Parse command-line arguments for game configuration."""
    parser = argparse.ArgumentParser(description="Play Hexaequo against AI agents")

    parser.add_argument("--opponent", type=str, default="mcts",
                        choices=["random", "mcts", "network"],
                        help="Type of AI opponent")
    parser.add_argument("--simulations", type=int, default=400,
                        help="MCTS simulations per move")
    parser.add_argument("--time-ms", type=float, default=None,
                        help="Optional wall-clock limit per move in milliseconds")
    parser.add_argument("--model", type=str, default=None,
                        help="Path to a trained network (for the network opponent)")
    parser.add_argument("--color", type=str, default="black", choices=["black", "white"],
                        help="Color played by the human (black moves first)")
    parser.add_argument("--watch", action="store_true",
                        help="Let two AI agents play each other")
    parser.add_argument("--max-turns", type=int, default=300,
                        help="Maximum number of actions before the game is abandoned")
    parser.add_argument("--debug", action="store_true",
                        help="Show debug information")

    return parser.parse_args(argv)


def create_opponent(args, name: str = "AI"):
    """Create an AI opponent based on command-line arguments."""
    config = MCTSConfig(budget=SearchBudget(max_simulations=args.simulations,
                                            max_time_ms=args.time_ms))

    if args.opponent == "random":
        from hexaequo_ai.rl.agents import RandomAgent
        return RandomAgent(name=f"Random {name}")

    if args.opponent == "mcts":
        return MCTSAgent(config=config, name=f"MCTS {name}", verbose=args.debug)

    if args.model is None:
        console.print("[red]Error: --model is required for the network opponent[/red]")
        sys.exit(1)

    from hexaequo_ai.rl.agents import create_network_agent
    from hexaequo_ai.rl.training import load_model

    network, _ = load_model(args.model)
    logger.info("Loaded model from %s", args.model)
    return create_network_agent(network, config, name=f"Network {name}")


def render_board(state: GameState) -> Table:
    """Build a rich table showing the board."""
    board = state.board
    table = Table(show_header=True, show_lines=False, box=None, padding=(0, 0))
    table.add_column("")
    for col in range(board.size):
        table.add_column(chr(ord('A') + col), justify="center", min_width=3)

    for row in range(board.size):
        cells = [Text(f"{board.size - row:>2} " + " " * row)]
        for col in range(board.size):
            pos = Position(row, col)
            piece = board.piece_at(pos)
            tile = board.tile_at(pos)
            if piece is not None:
                cells.append(Text(piece.symbol, style=_STYLES[piece.color]))
            elif tile is not None:
                cells.append(Text(TILE_SYMBOLS[tile], style=_STYLES[tile].replace("bold ", "dim ")))
            else:
                cells.append(Text("."))
        table.add_row(*cells)
    return table


def render_inventories(state: GameState) -> Table:
    """Build a rich table summarizing both inventories."""
    table = Table(title="Inventories")
    table.add_column("Color")
    for heading in ("Tiles", "Discs", "Rings", "Captured discs", "Captured rings"):
        table.add_column(heading, justify="right")

    for color in Color:
        inventory = state.inventory(color)
        label = f"{color.value}{' *' if color == state.side_to_move else ''}"
        table.add_row(
            Text(label, style=_STYLES[color]),
            str(inventory.tiles), str(inventory.discs), str(inventory.rings),
            str(inventory.captured_discs), str(inventory.captured_rings),
        )
    return table


def display_state(state: GameState) -> None:
    console.print(render_board(state))
    console.print(render_inventories(state))
    if state.must_continue_jump_from is not None:
        console.print(f"[yellow]Must continue jumping from "
                      f"{state.must_continue_jump_from.notation}[/yellow]")


def read_human_action(state: GameState) -> Optional[Action]:
    """
    Prompt until the human enters a legal action.

    Returns:
        Chosen action, or None if the human quits
    """
    while True:
        text = console.input(f"[{_STYLES[state.side_to_move]}]{state.side_to_move.value}[/] > ").strip()
        if text.lower() in ("quit", "exit", "q"):
            return None
        if text.lower() in ("help", "?", "moves"):
            for action in state.legal_actions():
                console.print(f"  {action}")
            continue
        try:
            action = parse_action(text)
        except ValueError as e:
            console.print(f"[red]{e}[/red]")
            continue
        if action not in state.legal_actions():
            console.print("[red]That action is not legal. Type 'moves' to list legal actions.[/red]")
            continue
        return action


def main(argv=None) -> int:
    """Entry point of ``hexaequo-play``."""
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )

    game = Game()
    if args.watch:
        for color in Color:
            agent = create_opponent(args, name=color.value.capitalize())
            game.register_agent(color, agent.get_action_callback())
        human = None
    else:
        human = Color(args.color)
        agent = create_opponent(args)
        game.register_agent(human.opponent, agent.get_action_callback())
        console.print(f"You play [b]{human.value}[/b] against {agent}. Type 'moves' for help.")

    while not game.game_over and len(game.history) < args.max_turns:
        state = game.state
        display_state(state)

        if state.side_to_move == human:
            action = read_human_action(state)
            if action is None:
                console.print("Game abandoned.")
                return 0
        else:
            with console.status(f"{state.side_to_move.value} is thinking..."):
                action = game.agent_callbacks[state.side_to_move](state, state.side_to_move)
            console.print(f"{state.side_to_move.value} plays [b]{action}[/b]")

        try:
            game.step(action)
        except IllegalActionError as e:
            logger.error("%s", e)
            return 1

    display_state(game.state)
    winner = game.get_winner()
    if winner is not None:
        console.print(f"[b]{winner.value} wins![/b]")
    elif game.game_over:
        console.print("[b]Draw: no legal actions left.[/b]")
    else:
        console.print(f"[b]Game stopped after {args.max_turns} actions.[/b]")
    return 0


if __name__ == "__main__":
    sys.exit(main())
