"""Command line interface.

Usage:
    # Show how a turn would be routed
    python -m workspaceAgent route "analyze deeply why churn went up"
    python -m workspaceAgent route "create tasks for each bug" --mode agentic --context-tokens 12000

    # Plan a goal, approve it and execute it with streamed progress
    python -m workspaceAgent plan "analyze negative feedback and then create work items" \\
        --team team_1 --workspace ws_1
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict
from typing import List, Optional

from workspaceAgent.execution import format_execution_results
from workspaceAgent.hitl import approve_plan, reject_plan
from workspaceAgent.planning import format_plan_for_display, validate_plan
from workspaceAgent.routing import get_routing_debug_info
from workspaceAgent.runtime.app import AgentRuntime, build_runtime
from workspaceAgent.utils import WorkspaceAgentError, setup_logging

LOGGER = logging.getLogger("workspaceagent.cli")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="workspaceAgent",
        description="Plan, approve and execute multi-step workspace tasks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    route = subparsers.add_parser("route", help="Print the routing decision for a message as JSON")
    route.add_argument("message", help="User message to analyze")
    route.add_argument("--mode", choices=["chat", "agentic"], default="chat", help="Chat mode (default: chat)")
    route.add_argument("--context-tokens", type=int, default=0, help="Tokens already in the conversation")
    route.add_argument("--model", dest="dev_override", help="Force a registered chat model by key")

    plan = subparsers.add_parser("plan", help="Plan a goal, ask for approval and execute it")
    plan.add_argument("goal", help="Natural-language goal")
    plan.add_argument("--team", required=True, help="Team id injected into every step")
    plan.add_argument("--workspace", required=True, help="Workspace id injected into every step")
    plan.add_argument("--yes", action="store_true", help="Approve the plan without asking")

    return parser.parse_args(argv)


def run_route(runtime: AgentRuntime, args: argparse.Namespace) -> int:
    analysis = runtime.analyze(
        args.message,
        mode=args.mode,
        context_tokens=args.context_tokens,
        dev_override_model=args.dev_override,
    )
    print(json.dumps(asdict(get_routing_debug_info(analysis)), indent=2, ensure_ascii=False))
    return 0


async def run_plan(runtime: AgentRuntime, args: argparse.Namespace) -> int:
    created = await runtime.plan(args.goal, team_id=args.team, workspace_id=args.workspace)
    if not created.success or created.plan is None:
        print(f"❌ Planning failed: {created.error}")
        return 1

    plan = created.plan
    validation = validate_plan(plan, runtime.tool_registry)
    print(format_plan_for_display(plan))
    if not validation.valid:
        print("\n❌ Plan is not executable:")
        for error in validation.errors:
            print(f"  - {error}")
        return 1

    if not args.yes:
        answer = input("\nApprove this plan? [y/N] ").strip().lower()
        if answer not in ("y", "yes"):
            plan = reject_plan(plan, "declined at the prompt")
            print(plan.summary)
            return 0

    plan = approve_plan(plan)
    print()
    async for event in runtime.stream(plan):
        if event.type == "step-start":
            print(f"🔄 {event.message}")
        elif event.type == "step-complete":
            print(f"✅ {event.message}")
        elif event.result is not None:
            print()
            print(format_execution_results(event.result))
            return 0 if event.type == "execution-complete" else 1
    return 1


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    runtime = build_runtime()
    setup_logging(
        getattr(logging, runtime.settings.observability.log_level.upper(), logging.INFO),
        runtime.settings.observability.log_dir,
    )
    LOGGER.info(f"Running command: {args.command}")

    try:
        if args.command == "route":
            return run_route(runtime, args)
        return asyncio.run(run_plan(runtime, args))
    except WorkspaceAgentError as exc:
        print(f"❌ {exc.user_message}")
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
