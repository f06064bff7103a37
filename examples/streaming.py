"""Streaming response example."""
import os

from textgen import CompleteRequest, OverloadedError, TextgenClient

client = TextgenClient(
    base_url="https://api.anthropic.com/v1",
    api_key=os.environ["ANTHROPIC_KEY"],
)

print("Streaming response:")
try:
    resp = client.complete_stream(
        CompleteRequest(
            model="claude-instant-1.2",
            prompt="\n\nHuman: What is your name?\n\nAssistant:",
            max_tokens_to_sample=1000,
        ),
        on_completion=lambda e: print(e.completion, end="", flush=True),
    )
except OverloadedError:
    print("\nServer overloaded, try again later")
else:
    print()  # newline at end
    print(f"Stop reason: {resp.stop_reason}")
