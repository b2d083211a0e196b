"""Seed sample research records into one or both stores."""
import argparse

from researchbench import db
from researchbench.research import BACKENDS, Research

INITIAL_RESEARCH = [
    {"name": "Very Cool Research", "word_length": 20000},
    {"name": "Cool Research", "word_length": 5000},
    {"name": "Literature Review", "word_length": 12000},
    {"name": "Lab Notes", "word_length": 800},
]


def main():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--backend", choices=[*BACKENDS, "all"], default="all")
    args = parser.parse_args()

    backends = list(BACKENDS) if args.backend == "all" else [args.backend]
    try:
        for backend in backends:
            repository = BACKENDS[backend]()
            for fields in INITIAL_RESEARCH:
                research = repository.save(Research(**fields))
                print(f"Created in {backend}: {research.name} (id={research.id})")
    finally:
        db.close_clients()


if __name__ == "__main__":
    main()
