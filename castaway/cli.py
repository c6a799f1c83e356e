"""
Castaway CLI - Command-line interface for the game.

Usage:
    castaway council [--seed N] [--vote ID]   Run one Tribal Council
    castaway season [--seed N]                Simulate a whole season
    castaway serve [--host H] [--port P]      Serve the REST API
"""

import argparse
import logging
import os
import sys


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Castaway - Survivor-style Tribal Council engine",
        prog="castaway",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log engine decisions")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Council command
    council_parser = subparsers.add_parser("council", help="Run one Tribal Council")
    council_parser.add_argument("--seed", type=int, default=None, help="Random seed")
    council_parser.add_argument("--name", default="Player", help="Human survivor's name")
    council_parser.add_argument(
        "--vote", type=int, default=None,
        help="Attend with your tribe and vote for this survivor id",
    )
    council_parser.add_argument(
        "--revote", type=int, default=None,
        help="Revote target if the vote ties (default: least-liked tied survivor)",
    )
    council_parser.add_argument("--idol", action="store_true", help="Play an idol with your vote")

    # Season command
    season_parser = subparsers.add_parser("season", help="Simulate a whole season")
    season_parser.add_argument("--seed", type=int, default=None, help="Random seed")
    season_parser.add_argument("--name", default="Player", help="Human survivor's name")
    season_parser.add_argument("--days-between", type=int, default=2, help="Days between councils")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Serve the REST API")
    serve_parser.add_argument("--host", default=os.getenv("CASTAWAY_HOST", "127.0.0.1"))
    serve_parser.add_argument("--port", type=int, default=int(os.getenv("CASTAWAY_PORT", "8000")))

    args = parser.parse_args(argv)

    level = "INFO" if args.verbose else os.getenv("CASTAWAY_LOG_LEVEL", "WARNING")
    logging.basicConfig(level=level.upper(), format="%(levelname)s %(name)s: %(message)s")

    if args.command == "council":
        cmd_council(args)
    elif args.command == "season":
        cmd_season(args)
    elif args.command == "serve":
        cmd_serve(args)
    else:
        parser.print_help()
        sys.exit(1)


def print_tribes(game_state):
    for tribe in game_state.tribes:
        immune = " (immune)" if tribe.is_immune else ""
        print(f"{tribe.name}{immune}:")
        for member in tribe.members:
            marker = " *" if member.is_human else ""
            print(f"  [{member.agent_id}] {member.name}{marker}")


def print_result(result):
    for message in result.messages:
        print(f"  {message}")
    for error in result.errors:
        print(f"  Error: {error}")


def cmd_council(args):
    """Run one Tribal Council."""
    from .session import LoopState, SessionManager

    manager = SessionManager()
    session = manager.create_session(human_name=args.name, random_seed=args.seed)
    gs = session.game_state

    # Without a vote the human's tribe wins immunity and watches
    if args.vote is None:
        gs.award_tribe_immunity(gs.get_player_tribe().name)

    print_tribes(gs)
    print()

    loop = session.start_council()
    result = loop.start()

    if result.loop_state == LoopState.WAITING_VOTE:
        result = loop.submit_vote(args.vote, play_idol=args.idol)
        if not result.success:
            print_result(result)
            sys.exit(1)

    if result.loop_state == LoopState.WAITING_REVOTE:
        print_result(result)
        target = args.revote if args.revote is not None else _least_liked(session, result.tied_ids)
        result = loop.submit_revote(target)

    print_result(result)
    if not result.success:
        sys.exit(1)


def cmd_season(args):
    """Simulate a season with the human voting for whoever they like least."""
    from .session import LoopState, SessionManager

    manager = SessionManager()
    session = manager.create_session(human_name=args.name, random_seed=args.seed)
    gs = session.game_state
    rng = session.rng

    print_tribes(gs)

    for _ in range(gs.remaining_count * 3):
        if gs.is_over:
            break

        print(f"\n=== Day {gs.day} ({gs.phase.value}) ===")
        if gs.is_post_merge():
            winner = rng.choice(gs.all_survivors())
            gs.award_individual_immunity(winner.agent_id)
            print(f"{winner.name} wins individual immunity")
        else:
            winner = rng.choice(gs.tribes)
            gs.award_tribe_immunity(winner.name)
            print(f"{winner.name} wins immunity")

        loop = session.start_council()
        result = loop.start()
        player = gs.get_player_agent()

        if result.loop_state == LoopState.WAITING_VOTE:
            targets = session.engine.eligible_targets(player)
            result = loop.submit_vote(_least_liked(session, [t.agent_id for t in targets]))
        if result.loop_state == LoopState.WAITING_REVOTE:
            print_result(result)
            targets = session.engine.eligible_targets(player)
            result = loop.submit_revote(_least_liked(session, [t.agent_id for t in targets]))
        print_result(result)

        for _ in range(args.days_between):
            for event in session.advance_day()[1:]:
                print(f"  {event}")

    print()
    if gs.phase.value == "game_over":
        print("You were voted out.")
    else:
        finalists = ", ".join(s.name for s in gs.all_survivors())
        print(f"Final Tribal Council: {finalists}")
        print(f"Jury: {', '.join(j.name for j in gs.jury)}")


def _least_liked(session, candidate_ids):
    player_id = session.game_state.player_id
    return min(candidate_ids, key=lambda i: session.graph.get_affinity(player_id, i))


def cmd_serve(args):
    """Serve the REST API."""
    try:
        import uvicorn
    except ImportError:
        print("uvicorn not installed. Install with: pip install uvicorn")
        sys.exit(1)

    uvicorn.run("castaway.api.app:app", host=args.host, port=args.port)


if __name__ == "__main__":
    main()
