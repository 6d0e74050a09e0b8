"""
Main entry point for ProductScout.
"""

import asyncio
import logging

from dotenv import load_dotenv

load_dotenv()

from productscout.logging_utils import configure_logging
from productscout.pipeline import ContentProxy, InvalidURLError, SuggestionPipeline
from productscout.tools.firecrawl_extractor import ExtractionService
from productscout.tools.product_type import detect_product_type, product_type_name


def print_suggestions(category: str) -> None:
    print(f"\nFinding {category} suggestions...")
    print("This may take a moment...\n")

    results = asyncio.run(SuggestionPipeline().run(category))
    print(f"Suggestions Found: {len(results)}")
    for item in results:
        print(f"  - {item.title} ({item.retailer})")
        print(f"    URL: {item.url}")
        if item.price:
            print(f"    Price: {item.price}")
        print(f"    Confidence: {item.confidence_score:.0%} [{item.confidence.value}]")
        if item.reasoning:
            print(f"    Why: {item.reasoning}")
    print()


def print_extraction(url: str) -> None:
    print(f"\nExtracting product information from: {url}\n")

    result = asyncio.run(ExtractionService().extract_with_retry(url))
    print(f"Title: {result.title}")
    print(f"Retailer: {result.retailer}")
    print(f"Type: {product_type_name(detect_product_type(result.url, result.title, result.description))}")
    print(f"Price: {result.price or 'N/A'}")
    print(f"Image: {result.image}")
    print(f"Confidence: {result.confidence.value}")
    if result.description:
        print(f"\n{result.description[:200]}")
    print()


def print_proxy(url: str) -> None:
    print(f"\nProxying: {url}\n")

    try:
        result = asyncio.run(ContentProxy().proxy(url))
    except InvalidURLError as e:
        print(f"Invalid URL: {e}")
        return

    print(f"Method: {result.method.value}")
    if result.success:
        print(f"Content-Type: {result.content_type}")
        print(f"HTML: {len(result.sanitized_html or '')} chars")
    else:
        descriptor = result.fallback_descriptor
        print(f"Blocked: {result.is_blocked} ({result.error})")
        print(f"View externally: {descriptor.title} at {descriptor.retailer} -> {descriptor.url}")
    print()


def main():
    """Run ProductScout in interactive mode."""
    configure_logging(logging.INFO)

    print("ProductScout - Furniture Product Discovery")
    print("=" * 42)
    print("\nCommands:")
    print("  suggest <category>  - Suggest real products for a category")
    print("  extract <url>       - Extract product info from a URL")
    print("  proxy <url>         - Fetch a product page for display")
    print("  quit                - Exit the application")
    print()

    while True:
        try:
            user_input = input("ProductScout> ").strip()

            if not user_input:
                continue

            command, _, argument = user_input.partition(" ")
            command = command.lower()
            argument = argument.strip()

            if command in ("quit", "exit", "q"):
                print("Goodbye!")
                break

            if command not in ("suggest", "extract", "proxy"):
                print(f"Unknown command: {command}")
                continue

            if not argument:
                print(f"Please provide {'a category' if command == 'suggest' else 'a URL'}.")
                continue

            if command == "suggest":
                print_suggestions(argument)
            elif command == "extract":
                print_extraction(argument)
            else:
                print_proxy(argument)

        except KeyboardInterrupt:
            print("\nGoodbye!")
            break
        except Exception as e:
            print(f"Error: {e}")


if __name__ == "__main__":
    main()
