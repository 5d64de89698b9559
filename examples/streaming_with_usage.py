"""
Example: Streaming with Usage Data

Streams a Gemini and an OpenAI Responses call and prints the canonical
chunks: text as it arrives, then tool calls, usage and the stop reason.

Set GEMINI_API_KEY and/or OPENAI_API_KEY (a .env file works too).
"""

import asyncio
import os

from llm_stream_sdk import GeminiProvider, OpenAIResponsesProvider, ToolMeta, StreamOptions


def print_chunk(chunk):
    if chunk.text:
        print(chunk.text, end="", flush=True)
    for node in chunk.tool_use_nodes():
        print(f"\n[tool {node.tool_name} id={node.tool_use_id}] {node.arguments_json}")
    if chunk.usage is not None:
        print(f"\nUsage: input={chunk.usage.input_tokens} output={chunk.usage.output_tokens}")
    if chunk.stop_reason is not None:
        print(f"Stop reason: {chunk.stop_reason.value}")


async def example_gemini():
    print("=== Gemini ===\n")
    async with GeminiProvider() as provider:
        body = {"contents": [{"role": "user", "parts": [{"text": "Write a haiku about Python"}]}]}
        async for chunk in provider.chat_stream(
            "gemini-2.0-flash",
            body,
            request_defaults={"generationConfig": {"maxOutputTokens": 200, "temperature": 0.7}},
        ):
            print_chunk(chunk)


async def example_openai_responses_tools():
    print("\n=== OpenAI Responses with a tool ===\n")
    options = StreamOptions(
        tool_meta_by_name={"get_weather": ToolMeta(server_name="weather", remote_tool_name="weather.current")},
        support_tool_use_start=True,
    )
    async with OpenAIResponsesProvider(options=options) as provider:
        body = {
            "model": "gpt-4o-mini",
            "input": "What's the weather in Paris?",
            "tools": [{
                "type": "function",
                "name": "get_weather",
                "parameters": {"type": "object", "properties": {"city": {"type": "string"}}},
            }],
        }
        async for chunk in provider.chat_stream(body, request_defaults={"max_output_tokens": 300}):
            print_chunk(chunk)


async def main():
    if os.getenv("GEMINI_API_KEY"):
        await example_gemini()
    if os.getenv("OPENAI_API_KEY"):
        await example_openai_responses_tools()


if __name__ == "__main__":
    asyncio.run(main())
