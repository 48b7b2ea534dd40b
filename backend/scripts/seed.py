#!/usr/bin/env python3
"""
Seed script to generate a large dependency graph for performance testing.

Tasks are created in "waves"; each task picks blockers from earlier waves,
plus a few deliberately bad edges (self references, duplicates, back edges)
so the rejection paths get exercised. Every edge goes through the engine,
so the same rules as the API apply.

Usage:
    python -m scripts.seed [--nodes 500] [--clear] [--seed 42]

Options:
    --nodes N    Number of tasks to generate (default: 500)
    --clear      Clear existing data before seeding
    --seed N     Random seed for reproducible graphs
"""

import argparse
import asyncio
import random
import time
from collections import Counter

from sqlalchemy import delete, func, select

from taskgraph.database import get_session_context, init_db
from taskgraph.exceptions import TaskGraphException
from taskgraph.models import Dependency, Task, TaskStatus
from taskgraph.services import DependencyEngine, DependencyInput, find_cycle


async def clear_data():
    """Clear all existing data."""
    print("Clearing existing data...")
    async with get_session_context() as session:
        await session.execute(delete(Dependency))
        await session.execute(delete(Task))
    print("Data cleared.")


def generate_tasks(num_nodes: int) -> list[list[Task]]:
    """Generate tasks grouped by wave (~50 tasks per wave)."""
    num_waves = max(5, num_nodes // 50)
    tasks_per_wave = max(1, num_nodes // num_waves)
    statuses = [TaskStatus.COMPLETED, TaskStatus.IN_PROGRESS, TaskStatus.PENDING]

    waves = []
    created = 0
    for wave in range(num_waves):
        wave_size = tasks_per_wave if wave < num_waves - 1 else num_nodes - created
        # Earlier waves are more likely to be done
        weights = [max(1, num_waves - wave), 2, max(1, wave)]
        waves.append([
            Task(
                title=f"Task W{wave:02d}-{i:03d}",
                description=f"Wave {wave}, Task {i}",
                status=random.choices(statuses, weights=weights)[0],
            )
            for i in range(wave_size)
        ])
        created += wave_size
    return waves


def propose_edges(waves: list[list[Task]]) -> list[tuple[Task, Task]]:
    """Pick (dependent, blocker) pairs; about 5% are intentionally invalid."""
    proposals = []
    for wave in range(1, len(waves)):
        available_waves = list(range(max(0, wave - 3), wave))
        for task in waves[wave]:
            for _ in range(random.randint(1, 4)):
                blocker = random.choice(waves[random.choice(available_waves)])
                proposals.append((task, blocker))

            roll = random.random()
            if roll < 0.02:
                proposals.append((task, task))
            elif roll < 0.05:
                # Back edge: an earlier task depending on this one
                earlier = random.choice(waves[random.choice(available_waves)])
                proposals.append((earlier, task))
    return proposals


async def seed(num_nodes: int) -> None:
    waves = generate_tasks(num_nodes)
    all_tasks = [task for wave in waves for task in wave]

    async with get_session_context() as session:
        print(f"Inserting {len(all_tasks)} tasks...")
        session.add_all(all_tasks)
        await session.flush()

        engine = DependencyEngine(session)
        proposals = propose_edges(waves)
        print(f"Submitting {len(proposals)} proposed dependencies...")

        outcomes = Counter()
        start = time.perf_counter()
        for i, (dependent, blocker) in enumerate(proposals, start=1):
            try:
                await engine.create_dependency(
                    DependencyInput(dependent_task_id=dependent.id, blocking_task_id=blocker.id, created_by="seed")
                )
                outcomes["CREATED"] += 1
            except TaskGraphException as exc:
                outcomes[exc.code] += 1
            if i % 200 == 0:
                print(f"  Processed {i} proposals...")
        elapsed = time.perf_counter() - start

    print(f"Insert time: {elapsed:.2f}s ({elapsed / max(1, len(proposals)) * 1000:.2f}ms per proposal)")
    for code, count in sorted(outcomes.items()):
        print(f"  {code:<16} {count}")


async def get_stats() -> None:
    async with get_session_context() as session:
        engine = DependencyEngine(session)
        dependencies = await engine.get_all_dependencies()
        num_tasks = (await session.execute(select(func.count()).select_from(Task))).scalar_one()

        in_degree = Counter(d.dependent_task_id for d in dependencies)
        blocked = 0
        for task_id in in_degree:
            if (await engine.get_blocking_state(task_id)).is_blocked:
                blocked += 1

        start = time.perf_counter()
        cycle = find_cycle(dependencies)
        check_time = time.perf_counter() - start

    print("\n=== Graph Statistics ===")
    print(f"Tasks:          {num_tasks}")
    print(f"Dependencies:   {len(dependencies)}")
    print(f"Max in-degree:  {max(in_degree.values(), default=0)}")
    print(f"Blocked tasks:  {blocked}")
    print(f"Acyclic:        {cycle is None} (checked in {check_time * 1000:.2f}ms)")


async def main():
    parser = argparse.ArgumentParser(description="Seed the database with a large dependency graph")
    parser.add_argument("--nodes", type=int, default=500, help="Number of tasks to create")
    parser.add_argument("--clear", action="store_true", help="Clear existing data first")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    args = parser.parse_args()

    if args.seed is not None:
        random.seed(args.seed)

    print("=== Taskgraph Seed Script ===")
    await init_db()
    if args.clear:
        await clear_data()

    await seed(args.nodes)
    await get_stats()
    print("\n=== Seeding Complete ===")


if __name__ == "__main__":
    asyncio.run(main())
