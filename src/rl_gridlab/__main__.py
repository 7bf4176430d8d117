"""
Headless trainer: python -m rl_gridlab --episodes 500 --seed 0
"""

from __future__ import annotations
import argparse
import logging
import sys

from .config import DEFAULT_HYPERPARAMS, ConfigurationError, updated_params
from .gridworld import DEFAULT_GRID
from .trainer import Trainer
from .utils import format_q_values

logger = logging.getLogger("rl_gridlab")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="rl_gridlab",
                                description="Train a tabular Q-learning agent on the default grid.")
    p.add_argument("--episodes", type=int, default=300, help="episodes to train")
    p.add_argument("--alpha", type=float, default=DEFAULT_HYPERPARAMS.learning_rate, help="learning rate")
    p.add_argument("--gamma", type=float, default=DEFAULT_HYPERPARAMS.discount_factor, help="discount factor")
    p.add_argument("--epsilon", type=float, default=DEFAULT_HYPERPARAMS.epsilon, help="initial exploration rate")
    p.add_argument("--epsilon-decay", type=float, default=DEFAULT_HYPERPARAMS.epsilon_decay,
                   help="per-episode multiplicative epsilon decay")
    p.add_argument("--seed", type=int, default=None, help="RNG seed")
    p.add_argument("--max-steps", type=int, default=1_000_000, help="total step cap")
    p.add_argument("--log-level", default="INFO",
                   choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    p.add_argument("--plot", action="store_true", help="show learning curve and greedy policy")
    return p


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        params = updated_params(DEFAULT_HYPERPARAMS,
                                learning_rate=args.alpha,
                                discount_factor=args.gamma,
                                epsilon=args.epsilon,
                                epsilon_decay=args.epsilon_decay)
    except ConfigurationError as exc:
        logger.error("Invalid hyperparameters: %s", exc)
        return 2

    trainer = Trainer(DEFAULT_GRID, params, seed=args.seed, episode_pause=0.0)
    trainer.train_episodes(args.episodes, max_steps=args.max_steps)

    recent = trainer.stats.recent(10)
    if recent:
        mean = sum(s.total_reward for s in recent) / len(recent)
        logger.info("Mean reward over last %d episodes: %.1f", len(recent), mean)

    total, path, reached = trainer.greedy_rollout(max_steps=4 * DEFAULT_GRID.width * DEFAULT_GRID.height)
    logger.info("Greedy rollout: reward=%.1f, %d moves, terminal=%s",
                total, len(path) - 1, reached)
    logger.info("Q at start %s: %s", tuple(DEFAULT_GRID.start),
                format_q_values(trainer.qtable.peek(DEFAULT_GRID.start)))

    if args.plot:
        import matplotlib.pyplot as plt
        from .utils import plot_learning_curve, plot_value_and_policy

        snap = trainer.snapshot()
        plot_learning_curve(snap.stats)
        plot_value_and_policy(DEFAULT_GRID, snap.q_table)
        trainer.env.render(agent=path[-1], trace=path, title="Greedy rollout")
        plt.show()
    return 0


if __name__ == "__main__":
    sys.exit(main())
