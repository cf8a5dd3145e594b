#!/usr/bin/env python3
"""
CLI tool for generating recipes through a running recipe service.
Usage: python tools/recipe_cli.py --ingredients "chicken,rice,garlic" --user-id me
"""

import argparse
import json
import queue
import sys
import threading
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from app.client import RecipeServiceClient, RecipeSession, RecipeClientError
from app.core.speech import TranscriptAccumulator


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Generate recipes from the ingredients you have",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python tools/recipe_cli.py -i "chicken,rice" -u alice
  python tools/recipe_cli.py -t "I have some jasmine rice and two eggs" -u alice --image
  python tools/recipe_cli.py --dictate -u alice
  python tools/recipe_cli.py --survey
  python tools/recipe_cli.py --health
        """
    )

    parser.add_argument(
        "-i", "--ingredients",
        type=str,
        help="Comma-separated list of ingredients"
    )

    parser.add_argument(
        "-t", "--transcript",
        type=str,
        help="Spoken-style sentence to extract ingredients from"
    )

    parser.add_argument(
        "--dictate",
        action="store_true",
        help="Read phrases from stdin until 2 seconds of silence (30 seconds max)"
    )

    parser.add_argument(
        "-s", "--servings",
        type=int,
        default=4,
        help="Number of servings (default: 4)"
    )

    parser.add_argument(
        "-u", "--user-id",
        type=str,
        default="cli-user",
        help="User id sent to the service (default: cli-user)"
    )

    parser.add_argument(
        "--url",
        type=str,
        default="http://localhost:5000",
        help="Base URL of the recipe service (default: http://localhost:5000)"
    )

    parser.add_argument(
        "--image",
        action="store_true",
        help="Also generate a food photograph"
    )

    parser.add_argument(
        "--survey",
        action="store_true",
        help="Print the onboarding survey questions"
    )

    parser.add_argument(
        "--health",
        action="store_true",
        help="Check that the service is reachable"
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Output results as JSON"
    )

    return parser.parse_args(argv)


def dictate(stream=sys.stdin, accumulator=None, poll_interval: float = 0.1):
    """Collect stdin lines as final speech results until the session should stop."""
    accumulator = accumulator or TranscriptAccumulator()
    lines: queue.Queue = queue.Queue()

    def reader():
        for line in stream:
            lines.put(line)
        lines.put(None)

    threading.Thread(target=reader, daemon=True).start()
    accumulator.start()

    while not accumulator.should_stop():
        try:
            line = lines.get(timeout=poll_interval)
        except queue.Empty:
            continue
        if line is None:
            break
        if line.strip():
            accumulator.add_results([(line.strip(), True)])

    return accumulator.finish()


def format_recipe(recipe):
    """Format a recipe for display."""
    output = []
    output.append(f"\n{'='*60}")
    output.append(f"  {recipe.title}")
    output.append(f"  Difficulty: {recipe.difficulty} | Time: {recipe.time}")
    output.append(f"{'='*60}")

    if recipe.image:
        output.append(f"\n  Image: {recipe.image}")

    output.append("\n  Ingredients:")
    for ingredient in recipe.ingredients:
        output.append(f"    - {ingredient}")

    output.append("\n  Instructions:")
    for i, step in enumerate(recipe.instructions, 1):
        output.append(f"    {i}. {step}")

    if recipe.nutrition:
        n = recipe.nutrition
        output.append(
            f"\n  Nutrition: {n.calories:g} kcal | protein {n.protein:g}g | "
            f"carbs {n.carbs:g}g | fat {n.fat:g}g"
        )

    return "\n".join(output)


def main(argv=None):
    """Main CLI entry point."""
    args = parse_args(argv)
    client = RecipeServiceClient(base_url=args.url)

    if args.health:
        ok = client.check_health()
        print("Service is running" if ok else "Service is unreachable")
        sys.exit(0 if ok else 1)

    if args.survey:
        try:
            data = client.get_survey()
        except RecipeClientError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        if args.json:
            print(json.dumps(data, indent=2))
        else:
            for i, q in enumerate(data["questions"], 1):
                print(f"\n{i}. {q['question']}")
                for option in q["options"]:
                    print(f"   - {option}")
        return

    ingredients = []
    if args.ingredients:
        ingredients = [i.strip() for i in args.ingredients.split(",") if i.strip()]
    else:
        transcript = args.transcript
        if args.dictate:
            print("Listening... type your ingredients, then pause.", file=sys.stderr)
            transcript = dictate()
        if transcript:
            ingredients = client.extract_ingredients(transcript, args.user_id)
            print(f"Detected ingredients: {', '.join(ingredients) or 'none'}", file=sys.stderr)

    if not ingredients:
        print("Error: Please provide at least one ingredient (--ingredients, --transcript or --dictate)")
        sys.exit(1)

    session = RecipeSession(client, args.user_id, allowance=1, with_images=args.image)
    try:
        recipe = session.generate(ingredients, servings=args.servings)
    except RecipeClientError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.json:
        print(json.dumps(recipe.model_dump(), indent=2))
    else:
        print(format_recipe(recipe))


if __name__ == "__main__":
    main()
