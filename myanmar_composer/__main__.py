import argparse
import concurrent.futures
import logging
import os
import re
import sys
import threading
import time

import psutil

from .composer import BACKSPACE, RESET, Commit, SyllableComposer, committed_text
from .normalization import MyanmarNormalizer
from .rule_engine import RewriteEngine, RuleTableError

_KEY_TOKEN_RE = re.compile(r"(<BS>|<RESET>)")


def get_memory_mb():
    process = psutil.Process(os.getpid())
    return process.memory_info().rss / 1024 / 1024


def parse_keys(text):
    """Split a key string into signals; <BS> is backspace, <RESET> a reset."""
    signals = []
    for part in _KEY_TOKEN_RE.split(text):
        if part == "<BS>":
            signals.append(BACKSPACE)
        elif part == "<RESET>":
            signals.append(RESET)
        else:
            signals.extend(part)
    return signals


def describe(events):
    out = []
    for event in events:
        name = type(event).__name__
        codes = " ".join(f"{ord(c):04X}" for c in event.text)
        out.append(f"{name}({event.text!r} [{codes}])")
    return ", ".join(out) if out else "-"


def compose_line(composer, line):
    events = composer.type_text(line)
    events.extend(composer.reset())
    return committed_text(events)


def run_concurrently(func, lines, workers):
    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
        # Map returns an iterator, converting to list forces execution
        list(executor.map(func, lines))


def read_lines(paths, limit):
    lines = []
    for filepath in paths:
        if limit == 0:
            break
        try:
            with open(filepath, 'r', encoding='utf-8') as f:
                for line in f:
                    if limit == 0:
                        break
                    line = line.strip()
                    if not line:
                        continue
                    lines.append(line)
                    if limit > 0:
                        limit -= 1
        except OSError as e:
            print(f"Error reading {filepath}: {e}")
            sys.exit(1)
    return lines


def benchmark(engine, lines, threads):
    count = len(lines)
    total_mb = sum(len(line.encode('utf-8')) for line in lines) / (1024 * 1024)
    print(f"\n--- Input Benchmark ({count} lines, {total_mb:.2f} MB) ---")
    print(f"Initial Memory: {get_memory_mb():.2f} MB")

    # 1. Sequential
    composer = SyllableComposer(engine)
    print("[1 Thread] Processing...", end="", flush=True)
    start_time = time.time()
    start_mem = get_memory_mb()

    for line in lines:
        compose_line(composer, line)

    dur_seq = max(time.time() - start_time, 0.001)
    print(f" Done in {dur_seq:.3f}s")
    print(f"Throughput: {count / dur_seq:.2f} lines/sec ({total_mb / dur_seq:.2f} MB/s)")
    print(f"Mem Delta: {get_memory_mb() - start_mem:.2f} MB")

    # 2. Concurrent: one composer per thread, rule table shared
    if threads > 1:
        local = threading.local()

        def work(line):
            if not hasattr(local, "composer"):
                local.composer = SyllableComposer(engine)
            return compose_line(local.composer, line)

        print(f"\n[{threads} Threads] Processing...", end="", flush=True)
        start_time = time.time()
        start_mem = get_memory_mb()

        run_concurrently(work, lines, threads)

        dur_conc = max(time.time() - start_time, 0.001)
        print(f" Done in {dur_conc:.3f}s")
        print(f"Throughput: {count / dur_conc:.2f} lines/sec ({total_mb / dur_conc:.2f} MB/s)")
        print(f"Mem Delta: {get_memory_mb() - start_mem:.2f} MB")
        print(f"Speedup: {dur_seq / dur_conc:.2f}x")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Myanmar Syllable Composer CLI")
    parser.add_argument("--benchmark", action="store_true", help="Run benchmark mode")
    parser.add_argument("--input", nargs="+", help="Input file(s)")
    parser.add_argument("--keys", nargs="+", help="Key sequence(s) to replay; <BS> = backspace, <RESET> = reset")
    parser.add_argument("--limit", type=int, default=-1, help="Limit number of lines")
    parser.add_argument("--threads", type=int, default=4, help="Number of threads for concurrent benchmark")
    parser.add_argument("--rules", help="Path to an alternative rules.json")
    parser.add_argument("--no-norm", action="store_true", help="Only replay lines through the composer, skip the text normalizer")
    parser.add_argument("--verbose", action="store_true", help="Log composer transitions")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        engine = RewriteEngine(args.rules)
    except RuleTableError as e:
        print(f"Error: {e}")
        sys.exit(1)

    normalizer = MyanmarNormalizer()

    if args.keys:
        for keys in args.keys:
            composer = SyllableComposer(engine, normalizer)
            committed = []
            print(f"Keys: {keys}")
            for signal in parse_keys(keys):
                events = composer.feed(signal)
                label = signal.name if signal in (BACKSPACE, RESET) else f"{signal!r} U+{ord(signal):04X}"
                print(f"  {label:<22} -> {describe(events)}")
                committed.extend(e.text for e in events if isinstance(e, Commit))
            committed.extend(e.text for e in composer.reset())
            text = "".join(committed)
            print(f"Committed: {text!r} [{' '.join(f'{ord(c):04X}' for c in text)}]")
            print("-" * 40)

    elif args.benchmark and args.input:
        print("Reading input files...")
        lines = read_lines(args.input, args.limit)
        benchmark(engine, lines, args.threads)

    elif args.input:
        composer = SyllableComposer(engine, normalizer)
        for line in read_lines(args.input, args.limit):
            print(f"Original:   {line}")
            print(f"Composed:   {compose_line(composer, line)}")
            if not args.no_norm:
                print(f"Normalized: {normalizer.normalize(line)}")
            print("-" * 40)
    else:
        print("Usage: python -m myanmar_composer (--keys <keys> | --input <file> [--benchmark]) [options]")


if __name__ == "__main__":
    main()
