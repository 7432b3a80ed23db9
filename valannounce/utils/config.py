"""Command-line configuration for the registry and announcer runners."""

from __future__ import annotations

import argparse
from typing import Literal

import bittensor as bt

Role = Literal["registry", "announcer"]


def add_args(parser: argparse.ArgumentParser) -> None:
    bt.logging.add_args(parser)


def add_registry_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--registry.host", type=str, default="0.0.0.0", help="Interface to bind the registry API on.")
    parser.add_argument("--registry.port", type=int, default=8020, help="Port to bind the registry API on.")


def add_announcer_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--announcer.once",
        action="store_true",
        default=False,
        help="Announce a single time and exit instead of re-announcing periodically.",
    )
    parser.add_argument(
        "--announcer.wait_s",
        type=float,
        default=30.0,
        help="How long to wait for the registry /healthz before giving up.",
    )


def config(*, role: Role) -> bt.Config:
    parser = argparse.ArgumentParser(conflict_handler="resolve")
    add_args(parser)
    if role == "registry":
        add_registry_args(parser)
    else:
        add_announcer_args(parser)
    cfg = bt.Config(parser=parser)
    bt.logging(config=cfg)
    return cfg
