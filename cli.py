#!/usr/bin/env python3
"""Simple CLI for trying the Intent Copilot locally"""

import argparse
import asyncio
import json
from typing import List, Optional

from copilot.config import settings
from copilot.core.execution import ExecutionTracker, get_execution_backend
from copilot.core.intent import (
    ConditionalOrderDraft,
    HistoryMessage,
    SwapDraft,
    UnknownDraft,
    get_intent_parser,
    is_tradable,
)
from copilot.core.normalizer import chain_name, resolve_chain
from copilot.core.render import quick_reply, render_draft, render_status, render_validation, response_text
from copilot.core.validation import get_draft_validator
from copilot.logging_config import bind_trade_context, setup_logging


def print_status():
    """Print which services the copilot can reach"""
    print("\n⚙️  Intent Copilot configuration")
    print("=" * 50)
    print(f"Default chain:    {chain_name(settings.default_chain_id)} ({settings.default_chain_id})")
    print(f"Default slippage: {settings.default_slippage_percent:g}%")
    print(f"1inch API key:    {'✅ set' if settings.has_oneinch_key else '❌ missing (swaps cannot be validated)'}")
    print(f"LLM provider:     {settings.llm_provider} / {settings.llm_model}")
    print(f"LLM API key:      {'✅ set' if settings.has_llm_key else '❌ missing (templates + keywords only)'}")


async def cli_parse(
    text: str,
    chain: Optional[str] = None,
    slippage: Optional[float] = None,
    validate: bool = True,
    history: Optional[List[HistoryMessage]] = None,
    wallet: Optional[str] = None,
) -> None:
    """Parse one command and, when it is a trade, quote it.

    With ``wallet`` set, a valid swap is also prepared and the unsigned
    transaction printed; nothing is signed or sent.
    """
    default_chain_id = resolve_chain(chain, settings.default_chain_id)

    draft = await get_intent_parser().parse(text, default_chain_id=default_chain_id, history=history)
    bind_trade_context(draft)
    if isinstance(draft, UnknownDraft):
        canned = quick_reply(text)
        if canned is not None:
            print(canned)
            return

    if slippage is not None and is_tradable(draft):
        draft = draft.model_copy(update={"slippage_percent": slippage})

    print(f"\n📝 Draft ({draft.mode}): {render_draft(draft)}")

    if not validate or not is_tradable(draft):
        print(response_text(draft))
        return

    if isinstance(draft, SwapDraft) and not settings.has_oneinch_key:
        print("⚠️  ONEINCH_API_KEY is not set; skipping the quote.")
        return

    validation = await get_draft_validator().validate(
        draft,
        default_slippage_percent=settings.default_slippage_percent,
    )
    status = "✅ Valid" if validation.is_valid else "❌ Invalid"
    print(f"\n{status}")
    print(render_validation(validation, draft.chain_id))

    if validation.is_valid and isinstance(draft, ConditionalOrderDraft):
        print(f"\nPredicate: {validation.quote.get('predicate')}")

    if validation.is_valid and wallet:
        await cli_prepare(draft, validation, wallet)


async def cli_prepare(draft, validation, wallet: str) -> None:
    """Run the tracker up to awaiting_confirmation and show the payload"""
    tracker = ExecutionTracker(
        draft,
        validation,
        backend=get_execution_backend(),
        timeout_s=settings.wallet_timeout_seconds,
    )
    print(f"\n⏳ {tracker.status.status_line}")
    status = await tracker.confirm(wallet)

    print(render_status(tracker.summary()))
    if status.payload is not None:
        print(json.dumps(status.payload.to_dict(), indent=2))


async def cli_chat(chain: Optional[str] = None):
    """Interactive mode with conversation history for follow-ups"""
    print("🤖 Intent Copilot")
    print("Type 'exit' to quit, 'help' for commands")
    print("-" * 40)

    history: List[HistoryMessage] = []

    while True:
        try:
            user_input = input("\n💬 You: ").strip()

            if user_input.lower() in ['exit', 'quit', 'q']:
                print("Goodbye! 👋")
                break

            elif user_input.lower() in ['help', 'h']:
                print("\nCommands:")
                print("  help  - Show this help")
                print("  exit  - Quit")
                print("  clear - Clear conversation history")
                print('  Anything else is parsed as a trade, e.g. "swap 1 ETH to USDC"')
                continue

            elif user_input.lower() == 'clear':
                history = []
                print("History cleared.")
                continue

            elif not user_input:
                continue

            await cli_parse(user_input, chain=chain, history=history)
            history.append(HistoryMessage(role="user", content=user_input))

        except KeyboardInterrupt:
            print("\nGoodbye! 👋")
            break


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Intent Copilot CLI")
    subparsers = parser.add_subparsers(dest="command")

    parse_parser = subparsers.add_parser("parse", help="Parse (and quote) a trading command")
    parse_parser.add_argument("text", help='Command, e.g. "swap 1 ETH to USDC on base"')
    parse_parser.add_argument("--chain", help="Network to assume when the command names none")
    parse_parser.add_argument("--slippage", type=float, help="Override slippage in percent")
    parse_parser.add_argument("--dry-run", action="store_true", help="Parse only, do not request a quote")
    parse_parser.add_argument("--wallet", help="Wallet address; prepares the unsigned transaction")

    chat_parser = subparsers.add_parser("chat", help="Interactive mode")
    chat_parser.add_argument("--chain", help="Network to assume when a command names none")

    subparsers.add_parser("status", help="Show configuration status")

    parser.add_argument("--log-level", help="Override LOG_LEVEL")
    return parser


async def main():
    parser = build_parser()
    args = parser.parse_args()

    setup_logging(args.log_level)

    if not args.command:
        parser.print_help()
        return

    command = args.command.lower()

    if command == "parse":
        if args.slippage is not None and not 0 <= args.slippage <= 50:
            raise ValueError("Slippage must be between 0 and 50 percent")
        await cli_parse(args.text, args.chain, args.slippage, validate=not args.dry_run, wallet=args.wallet)

    elif command == "chat":
        await cli_chat(args.chain)

    elif command == "status":
        print_status()

    else:
        print(f"❌ Unknown command: {command}")
        parser.print_help()


if __name__ == "__main__":
    asyncio.run(main())
