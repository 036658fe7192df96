import argparse
import datetime
import random
import uuid
from pathlib import Path
from typing import List, Union


SOURCES = ["auth", "user-service", "payment-service", "inventory", "search", "deploy"]
LEVELS = ["INFO", "INFO", "INFO", "WARN", "ERROR", "DEBUG"]


def _message(rng: random.Random, source: str, level: str) -> str:
    user_id = rng.randint(1000, 9999)

    if source == "auth":
        if level == "ERROR":
            return f"brute force detected ip=192.168.1.{rng.randint(1, 255)}"
        return f"User login success id={user_id}"
    if source == "payment-service":
        if level == "ERROR":
            return f"failed charge ref=/{uuid.UUID(int=rng.getrandbits(128)).hex}/"
        return f"charge success user_id={user_id} amount={rng.choice([499, 1299, 2500])}"
    if source == "inventory":
        return f"stock check product=sku-{rng.randint(100, 999)} status=in_stock"
    if source == "search":
        return f"query executed results={rng.randint(0, 100)} took {rng.randint(2, 900)} ms"
    return f"operation processed user_id={user_id}"


def generate_logs(
    root: Union[str, Path],
    files: int = 8,
    lines_per_file: int = 1000,
    garbage_ratio: float = 0.02,
    seed: int = 0,
) -> List[Path]:
    """
    Write synthetic log files under root, spread over nested directories.

    A share of the lines are garbage or carry an impossible timestamp,
    so the parser's miss paths get exercised too.
    """
    rng = random.Random(seed)
    root = Path(root)
    written: List[Path] = []

    current_time = datetime.datetime(2026, 1, 3, 13, 55, 1)

    for i in range(files):
        path = root / f"node-{i % 3}" / f"app-{i}.log"
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w", encoding="utf-8") as f:
            for _ in range(lines_per_file):
                current_time += datetime.timedelta(seconds=rng.randint(1, 45))
                ts = current_time.strftime("%Y-%m-%dT%H:%M:%SZ")

                roll = rng.random()
                if roll < garbage_ratio / 2:
                    line = "garbage line with no structure"
                elif roll < garbage_ratio:
                    line = "2026-13-45T99:00:00Z [INFO] auth - bad clock"
                else:
                    level = rng.choice(LEVELS)
                    source = rng.choice(SOURCES)
                    line = f"{ts} [{level}] {source} - {_message(rng, source, level)}"

                f.write(line + "\n")

        written.append(path)

    return written


def main():
    parser = argparse.ArgumentParser(description="Generate synthetic log files")
    parser.add_argument("out_dir")
    parser.add_argument("--files", type=int, default=8)
    parser.add_argument("--lines", type=int, default=10000)
    parser.add_argument("--seed", type=int, default=0)
    args = parser.parse_args()

    paths = generate_logs(args.out_dir, args.files, args.lines, seed=args.seed)
    print(f"Generated {len(paths)} files x {args.lines} lines in {args.out_dir}")


if __name__ == "__main__":
    main()
