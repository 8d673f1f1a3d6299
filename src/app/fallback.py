"""
PrepForge - Fallback Problems.

A small hand-written catalogue used when generation keeps failing.
Selection is a pure function of (kind, slot index, difficulty), so the
same slot always receives the same problem.
"""

from collections.abc import Callable
from typing import Any

from src.core.domain.models import PromptKind, parse_problem_kind
from src.core.domain.problems import PROBLEM_MODELS, ProblemBase


FallbackFactory = Callable[[PromptKind, int, str], ProblemBase]

FALLBACK_ESTIMATED_TIME = "15-20 minutes"
_DIFFICULTIES = ("easy", "medium", "hard")


# -----------------------------------------------------------------------------
# Catalogue
# -----------------------------------------------------------------------------

FALLBACK_CATALOGUE: dict[PromptKind, tuple[dict[str, Any], ...]] = {
    PromptKind.DSA: (
        {
            "title": "Array Rotation",
            "description": "Given an array of integers and a number k, rotate the array by k positions to the right.",
            "problemStatement": "Implement a function that rotates an array by k positions to the right.",
            "inputFormat": "Array of integers and integer k",
            "outputFormat": "Rotated array",
            "constraints": ["1 <= array.length <= 10^5", "0 <= k <= 10^5"],
            "examples": [
                {
                    "input": "[1, 2, 3, 4, 5], k = 2",
                    "output": "[4, 5, 1, 2, 3]",
                    "explanation": "Rotate right by 2 positions",
                },
            ],
            "category": "Arrays",
            "tags": ["arrays", "two-pointers"],
            "hints": ["Rotating by k is the same as rotating by k % n"],
            "followUpQuestions": ["Can you do it in place with O(1) extra space?"],
        },
        {
            "title": "First Unique Character",
            "description": "Find the index of the first non-repeating character in a string.",
            "problemStatement": "Return the index of the first character that appears exactly once, or -1 if there is none.",
            "inputFormat": "A string s of lowercase letters",
            "outputFormat": "An integer index",
            "constraints": ["1 <= s.length <= 10^5"],
            "examples": [
                {"input": "\"leetcode\"", "output": "0", "explanation": "'l' appears once"},
                {"input": "\"aabb\"", "output": "-1"},
            ],
            "category": "Hashing",
            "tags": ["strings", "hashmap"],
            "hints": ["Count occurrences in one pass, then scan again"],
            "followUpQuestions": ["What if the input is a stream?"],
        },
    ),
    PromptKind.MACHINE_CODING: (
        {
            "title": "Todo List Component",
            "description": "Build a React todo list component with add, complete, and delete functionality.",
            "requirements": ["Add new todos", "Mark todos as complete", "Delete todos", "Persist todos"],
            "constraints": ["No external state management libraries"],
            "acceptanceCriteria": [
                "Component renders correctly",
                "All CRUD operations work",
                "State management is clean",
            ],
            "technologies": ["React", "TypeScript"],
            "hints": ["Use useState for state management", "Consider using useCallback for performance"],
        },
        {
            "title": "Debounced Search Box",
            "description": "Build a search input that queries a mock API with debouncing and shows results.",
            "requirements": [
                "Debounce input by 300ms",
                "Show loading and empty states",
                "Highlight the matched substring",
            ],
            "constraints": ["No third-party debounce utilities"],
            "acceptanceCriteria": [
                "Only the latest query's results are shown",
                "Keyboard navigation works",
            ],
            "technologies": ["React", "TypeScript"],
            "hints": ["Cancel stale requests with AbortController"],
        },
    ),
    PromptKind.SYSTEM_DESIGN: (
        {
            "title": "Component Library Design",
            "description": "Design a reusable component library for a large-scale frontend application.",
            "functionalRequirements": [
                "Theme support",
                "Accessibility compliance",
                "Responsive design",
                "TypeScript support",
            ],
            "nonFunctionalRequirements": [
                "Performance",
                "Maintainability",
                "Documentation",
                "Bundle size optimization",
            ],
            "constraints": ["Must support tree shaking"],
            "scale": {"users": "100K+ developers", "requestsPerSecond": "100+ RPS", "dataSize": "100MB+ bundle"},
            "expectedDeliverables": [
                "Component architecture",
                "API design",
                "Documentation strategy",
                "Versioning strategy",
            ],
            "technologies": ["React", "TypeScript", "Storybook"],
            "followUpQuestions": [
                "How would you handle versioning?",
                "What about bundle size optimization?",
                "How would you ensure accessibility?",
            ],
        },
        {
            "title": "News Feed Frontend",
            "description": "Design the client architecture of an infinitely scrolling news feed.",
            "functionalRequirements": ["Infinite scroll", "Optimistic likes", "Offline reading"],
            "nonFunctionalRequirements": ["Smooth scrolling at 60fps", "Fast first paint"],
            "constraints": ["Must work on low-end mobile devices"],
            "scale": {"users": "10M daily users", "requestsPerSecond": "5K RPS", "dataSize": "1TB media"},
            "expectedDeliverables": ["Component tree", "Data fetching and caching strategy", "API contract"],
            "technologies": ["React", "Service Workers", "IndexedDB"],
            "followUpQuestions": ["How do you virtualize the list?"],
        },
    ),
    PromptKind.THEORY: (
        {
            "title": "JavaScript Closures and Scope",
            "description": "Explain closures in JavaScript and provide practical examples.",
            "question": (
                "What are closures in JavaScript? Explain with examples and discuss their "
                "practical use cases in modern web development."
            ),
            "expectedAnswer": (
                "A closure is a function that keeps access to variables in its outer scope "
                "even after the outer function has returned."
            ),
            "keyPoints": ["Lexical scoping", "Memory management", "Practical applications", "Common pitfalls"],
            "examples": [
                "Module pattern implementation",
                "Event handler with closure",
                "Currying and partial application",
            ],
            "followUpQuestions": ["How can closures cause memory leaks?"],
        },
        {
            "title": "The Event Loop",
            "description": "Explain how the JavaScript event loop schedules work.",
            "question": "Walk through how the event loop orders timers, promises and rendering.",
            "expectedAnswer": (
                "The call stack runs to completion, then all microtasks drain, then the "
                "browser may render before the next macrotask is taken."
            ),
            "keyPoints": ["Call stack", "Microtask queue", "Macrotask queue", "Rendering steps"],
            "examples": ["setTimeout(fn, 0) runs after Promise.resolve().then(fn)"],
            "followUpQuestions": ["What does queueMicrotask do?"],
        },
    ),
    PromptKind.MOCK_INTERVIEW: (
        {
            "title": "Frontend Technical Screen",
            "description": "A general technical screen covering fundamentals and past experience.",
            "interviewType": "technical",
            "questions": [
                "Walk me through a recent frontend project you are proud of.",
                "How does the browser turn HTML and CSS into pixels?",
                "How do you decide where state should live in a React app?",
            ],
            "evaluationCriteria": ["Technical depth", "Communication", "Problem solving"],
            "followUpQuestions": ["What would you do differently today?"],
        },
        {
            "title": "Behavioural Round",
            "description": "Questions about collaboration, ownership and handling conflict.",
            "interviewType": "behavioral",
            "questions": [
                "Tell me about a time you disagreed with a technical decision.",
                "Describe a production incident you owned end to end.",
            ],
            "evaluationCriteria": ["Ownership", "Clarity", "Self-awareness"],
            "followUpQuestions": ["What did you learn from it?"],
        },
    ),
}


def build_fallback_problem(
    kind: PromptKind | str,
    slot_index: int,
    difficulty: str = "medium",
    estimated_time: str = FALLBACK_ESTIMATED_TIME,
) -> ProblemBase:
    """
    Build the deterministic fallback problem for a slot.

    Args:
        kind: Problem kind (evaluation is rejected)
        slot_index: Position of the slot in its round
        difficulty: Requested difficulty; unknown values become "medium"
        estimated_time: Time budget shown to the candidate
    """
    problem_kind = parse_problem_kind(kind)
    catalogue = FALLBACK_CATALOGUE[problem_kind]
    entry = catalogue[slot_index % len(catalogue)]

    level = difficulty.strip().lower() if isinstance(difficulty, str) else "medium"
    if level not in _DIFFICULTIES:
        level = "medium"

    return PROBLEM_MODELS[problem_kind].model_validate({
        **entry,
        "id": f"fallback-{problem_kind.value}-{slot_index}",
        "type": problem_kind.value,
        "difficulty": level,
        "estimatedTime": estimated_time or FALLBACK_ESTIMATED_TIME,
    })
