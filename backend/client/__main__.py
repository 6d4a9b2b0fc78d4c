"""
Terminal demo client.

Typed lines stand in for speech, printed lines stand in for synthesis:

    python -m client --server http://localhost:3001

The loop ends when the ticket conversation reaches "complete", on EOF,
or on Ctrl-C. The session is ended on the server on the way out.
"""

from __future__ import annotations

import argparse
import asyncio
import sys

import httpx
from websockets.exceptions import WebSocketException

from client.adapter import SpeechIOAdapter
from client.capabilities import ConsoleRecognizer, ConsoleSynthesizer, InputClosed
from client.channel import ChannelClient
from client.voice_state import VoiceState
from observability import logger
from observability.logger import log_event

# Server down, refused, or handshake rejected
_UNREACHABLE = (httpx.HTTPError, OSError, WebSocketException)


async def run(server: str) -> int:
    channel = ChannelClient(server)

    try:
        await channel.open()

        adapter = SpeechIOAdapter(
            recognizer=ConsoleRecognizer(),
            synthesizer=ConsoleSynthesizer(),
            send_utterance=channel.send_utterance,
        )
        await adapter.speak()

        while channel.last_state != "complete":
            reply = await adapter.talk()

            if adapter.state is VoiceState.ERROR:
                print(f"[error] {adapter.last_error}", file=sys.stderr)
                if adapter.fallback_text:
                    print(f"assistant (text)> {adapter.fallback_text}")
                if isinstance(adapter.last_exception, InputClosed):
                    return 1
                adapter.retry()
                continue

            if reply is not None and adapter.last_latency_ms is not None:
                await channel.send_metrics({
                    "latencyMs": round(adapter.last_latency_ms, 1),
                    "processingSteps": ["capture", "channel", "synthesis"],
                })
    except _UNREACHABLE as exc:
        print(f"[error] cannot reach {server}: {exc}", file=sys.stderr)
        return 1
    finally:
        await _shutdown(channel)

    return 0


async def _shutdown(channel: ChannelClient) -> None:
    try:
        await channel.close()
    except _UNREACHABLE as exc:
        log_event({
            "event_type": "CLIENT_SHUTDOWN_FAILED",
            "exception": type(exc).__name__,
            "message": str(exc),
        })


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Voice ticket intake console client")
    parser.add_argument("--server", default="http://localhost:3001", help="API base URL")
    parser.add_argument("--verbose", action="store_true", help="print JSONL debug events")
    args = parser.parse_args(argv)

    logger.configure(enabled=args.verbose)

    try:
        return asyncio.run(run(args.server))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
