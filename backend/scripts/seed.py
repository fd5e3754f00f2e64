#!/usr/bin/env python3
"""
Seed script to generate demo tasks with nested subtask trees.

Creates a demo user and N tasks through the task services, so every task
carries a real activity log and checklist progress:
- Random status, priority, category and tags
- Subtask trees up to --depth levels deep, some subtasks completed
- A few tasks overdue, some due today, some archived

Usage:
    python -m scripts.seed [--tasks 50] [--depth 3] [--clear]

Options:
    --tasks N    Number of tasks to create (default: 50)
    --depth D    Maximum subtask nesting depth (default: 3)
    --user ID    Id of the demo owner (default: demo-user)
    --clear      Clear existing data before seeding
"""

import argparse
import asyncio
import random
import time
from datetime import timedelta

from sqlalchemy import text

from tasknest.config import get_settings
from tasknest.database import async_session_maker, init_db
from tasknest.repository import TaskRepository
from tasknest.schemas import SubtaskCreate, SubtaskUpdate, TaskCreate, TaskPriority, TaskStatus, TaskUpdate
from tasknest.services.lifecycle import TaskService
from tasknest.services.notifications import NullNotifier
from tasknest.services.queries import TaskQueries
from tasknest.services.subtask_tree import find
from tasknest.services.users import UserDirectory
from tasknest.timeutils import utcnow

CATEGORIES = ["general", "work", "personal", "errands", "health"]
TAGS = ["home", "office", "urgent", "weekly", "shopping", "reading", "finance", "travel"]
VERBS = ["Plan", "Review", "Write", "Book", "Clean", "Fix", "Call", "Prepare"]
NOUNS = ["report", "kitchen", "budget", "trip", "presentation", "garden", "taxes", "newsletter"]


async def clear_data():
    """Clear all existing data."""
    print("Clearing existing data...")
    async with async_session_maker() as session:
        await session.execute(text("DELETE FROM tasks"))
        await session.execute(text("DELETE FROM users"))
        await session.commit()
    print("Data cleared.")


def random_title() -> str:
    return f"{random.choice(VERBS)} {random.choice(NOUNS)}"


async def add_subtask_tree(service: TaskService, owner_id: str, task_id, max_depth: int) -> int:
    """Grow a random subtree breadth-first; returns the number of subtasks added."""
    added = 0
    frontier = [(None, 1)]
    while frontier:
        parent_id, depth = frontier.pop(0)
        if depth > max_depth:
            continue
        for _ in range(random.randint(0 if parent_id else 1, 3)):
            task = await service.add_subtask(
                task_id,
                owner_id,
                SubtaskCreate(title=f"Step: {random_title()}", parent_id=parent_id),
            )
            node = task.subtasks[-1] if parent_id is None else _last_child(task, parent_id)
            added += 1
            if random.random() < 0.4:
                await service.update_subtask(task_id, node.id, owner_id, SubtaskUpdate(completed=True))
            if random.random() < 0.5:
                frontier.append((node.id, depth + 1))
    return added


def _last_child(task, parent_id):
    return find(task.subtasks, parent_id).subtasks[-1]


async def seed_tasks(owner_id: str, num_tasks: int, max_depth: int) -> int:
    """Create the demo owner and tasks in one transaction; returns the subtask count."""
    total_subtasks = 0
    now = utcnow()
    async with async_session_maker() as session:
        users = UserDirectory(session)
        await users.register(owner_id, email=f"{owner_id}@example.com", name="Demo User")
        service = TaskService(TaskRepository(session), users, NullNotifier(), get_settings())

        for i in range(num_tasks):
            due_in = random.choice([None, -3, -1, 0, 1, 7, 30])
            task = await service.create(
                owner_id,
                TaskCreate(
                    title=f"{random_title()} #{i + 1}",
                    description=f"Demo task {i + 1}",
                    priority=random.choice(list(TaskPriority)),
                    category=random.choice(CATEGORIES),
                    tags=random.sample(TAGS, k=random.randint(0, 3)),
                    due_date=None if due_in is None else now + timedelta(days=due_in, hours=1),
                    estimated_time=random.choice([0, 30, 60, 120, 240]),
                ),
            )
            total_subtasks += await add_subtask_tree(service, owner_id, task.id, max_depth)

            status = random.choice(list(TaskStatus))
            if status != TaskStatus.TODO:
                await service.update(task.id, owner_id, TaskUpdate(status=status))
            if random.random() < 0.3:
                await service.log_time(task.id, owner_id, random.randint(15, 180))
            if random.random() < 0.1:
                await service.archive(task.id, owner_id)

            if (i + 1) % 10 == 0:
                print(f"  Created {i + 1} tasks...")

        await session.commit()
    return total_subtasks


async def print_stats(owner_id: str):
    async with async_session_maker() as session:
        stats = await TaskQueries(TaskRepository(session)).stats(owner_id)

    print(f"\n=== Task Statistics ===")
    print(f"Total:        {stats.total}")
    print(f"Todo:         {stats.todo}")
    print(f"In progress:  {stats.in_progress}")
    print(f"Completed:    {stats.completed} ({stats.completion_percentage}%)")
    print(f"Blocked:      {stats.blocked}")
    print(f"On hold:      {stats.on_hold}")
    print(f"Overdue:      {stats.overdue}")
    print(f"Urgent open:  {stats.urgent}")


async def main():
    parser = argparse.ArgumentParser(description="Seed the database with demo tasks")
    parser.add_argument("--tasks", type=int, default=50, help="Number of tasks to create")
    parser.add_argument("--depth", type=int, default=3, help="Maximum subtask nesting depth")
    parser.add_argument("--user", type=str, default="demo-user", help="Id of the demo owner")
    parser.add_argument("--clear", action="store_true", help="Clear existing data first")

    args = parser.parse_args()

    print(f"=== Tasknest Seed Script ===")
    print(f"Generating {args.tasks} tasks for {args.user}...")

    await init_db()

    if args.clear:
        await clear_data()

    start_time = time.time()
    num_subtasks = await seed_tasks(args.user, args.tasks, args.depth)
    print(f"Created {args.tasks} tasks with {num_subtasks} subtasks in {time.time() - start_time:.2f}s")

    await print_stats(args.user)

    print(f"\n=== Seeding Complete ===")


if __name__ == "__main__":
    asyncio.run(main())
