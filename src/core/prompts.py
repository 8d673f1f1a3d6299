"""
PrepForge - Prompt Presets.

Default variable layers, company and technology presets, and the mapping
from problem kinds to template names. The template bodies themselves live
in the versioned files under ``templates/``.
"""

from src.core.domain.models import PromptKind


# -----------------------------------------------------------------------------
# Kind -> Template Name
# -----------------------------------------------------------------------------

KIND_TEMPLATE_NAMES: dict[PromptKind, str] = {
    PromptKind.DSA: "dsaProblem",
    PromptKind.THEORY: "theoryProblem",
    PromptKind.MACHINE_CODING: "machineCodingProblem",
    PromptKind.SYSTEM_DESIGN: "systemDesignProblem",
    PromptKind.MOCK_INTERVIEW: "mockInterviewProblem",
    PromptKind.EVALUATION: "evaluateSubmission",
}


# -----------------------------------------------------------------------------
# Hard Defaults
# -----------------------------------------------------------------------------

DEFAULT_VARIABLES: dict[str, str] = {
    "designation": "Frontend Developer",
    "companies": "Technology Company",
    "round": "1",
    "experienceLevel": "mid-level",
    "difficulty": "medium",
    "estimatedTime": "30-45 minutes",
    "category": "Frontend",
    "primaryTechnology": "React",
    "secondaryTechnology": "TypeScript",
    "technologyStack": "React, TypeScript, CSS",
    "focusAreas": "JavaScript, React, CSS",
    "companyContext": "",
    "additionalContext": "",
    "problemNumber": "1",
    "totalProblems": "1",
}

# Per-kind defaults layered over DEFAULT_VARIABLES
KIND_DEFAULTS: dict[PromptKind, dict[str, str]] = {
    PromptKind.DSA: {
        "category": "Arrays",
        "primaryTag": "algorithms",
        "secondaryTag": "data-structures",
        "tertiaryTag": "problem-solving",
        "optimizationFocus": "time complexity",
    },
    PromptKind.THEORY: {
        "estimatedTime": "15-30 minutes",
        "alternativeTechnology": "Vue.js",
    },
    PromptKind.MACHINE_CODING: {
        "estimatedTime": "45-60 minutes",
        "domainFocus": "Frontend Development",
        "applicationContext": "web application",
        "cssFramework": "Tailwind CSS",
        "interactivityFeature": "real-time updates",
        "restrictedLibrary": "jQuery",
        "performanceMetric": "loading time < 3s",
        "codingStandard": "ESLint + Prettier",
        "designPattern": "component composition",
        "performanceFocus": "render optimization",
    },
    PromptKind.SYSTEM_DESIGN: {
        "estimatedTime": "45-60 minutes",
        "domainFocus": "Frontend Development",
        "systemType": "web platform",
        "useCase": "user management",
        "userScale": "100K users",
        "dataVolume": "1TB",
        "keyFeature1": "authentication",
        "keyFeature2": "data visualization",
        "availabilityRequirement": "99.9%",
        "responseTime": "200ms",
        "scalabilityRequirement": "horizontal",
        "securityRequirement": "GDPR compliant",
        "rpsScale": "1000 RPS",
        "apiStyle": "REST API",
        "backendTech": "Node.js",
        "databaseTech": "PostgreSQL",
        "cachingTech": "Redis",
        "scalingChallenge": "database sharding",
        "reliabilityConcern": "data consistency",
    },
    PromptKind.MOCK_INTERVIEW: {
        "interviewType": "technical",
        "duration": "60 minutes",
        "focusAreas": "Technical Skills",
    },
    PromptKind.EVALUATION: {
        "problemType": "coding",
        "technology": "JavaScript/React",
        "timeAllocated": "N/A",
        "timeTaken": "N/A",
        "codeQualityFocus": "JavaScript/React",
        "frontendFocus": "User Experience",
        "scalabilityContext": "production environment",
    },
}


# -----------------------------------------------------------------------------
# Domain Presets
# -----------------------------------------------------------------------------

TECH_STACK_PRESETS: dict[str, dict[str, str]] = {
    "react": {
        "primaryTechnology": "React",
        "secondaryTechnology": "TypeScript",
        "technologyStack": "React, TypeScript, CSS",
        "cssFramework": "Tailwind CSS",
    },
    "vue": {
        "primaryTechnology": "Vue.js",
        "secondaryTechnology": "TypeScript",
        "technologyStack": "Vue.js, TypeScript, CSS",
        "cssFramework": "Vuetify",
    },
    "angular": {
        "primaryTechnology": "Angular",
        "secondaryTechnology": "TypeScript",
        "technologyStack": "Angular, TypeScript, SCSS",
        "cssFramework": "Angular Material",
    },
    "fullstack": {
        "primaryTechnology": "React",
        "secondaryTechnology": "Node.js",
        "technologyStack": "React, Node.js, PostgreSQL",
        "cssFramework": "Tailwind CSS",
    },
}

COMPANY_PRESETS: dict[str, dict[str, str]] = {
    "google": {
        "focusAreas": "scalability, performance, algorithms",
        "companyContext": "Google is a leading technology company focusing on search, AI, and cloud computing.",
        "technologyStack": "React, TypeScript, Angular",
    },
    "meta": {
        "focusAreas": "React, performance, user experience",
        "companyContext": "Meta is a social technology company focusing on connecting people.",
        "technologyStack": "React, React Native, GraphQL",
    },
    "netflix": {
        "focusAreas": "performance, streaming, React",
        "companyContext": "Netflix is a streaming entertainment service focusing on global content delivery.",
        "technologyStack": "React, Node.js, microservices",
    },
    "uber": {
        "focusAreas": "real-time systems, React, scalability",
        "companyContext": "Uber is a technology platform focusing on mobility and delivery.",
        "technologyStack": "React, React Native, Node.js",
    },
    "airbnb": {
        "focusAreas": "React, design systems, accessibility",
        "companyContext": "Airbnb is a platform for unique travel experiences and accommodations.",
        "technologyStack": "React, React Native, Node.js",
    },
}

EXPERIENCE_LEVEL_MAPPINGS: dict[str, str] = {
    "entry": "junior",
    "junior": "junior",
    "mid": "mid-level",
    "midlevel": "mid-level",
    "senior": "senior",
    "lead": "senior",
    "principal": "senior",
    "staff": "senior",
}

DIFFICULTY_MAPPINGS: dict[str, str] = {
    "1": "easy",
    "2": "medium",
    "3": "hard",
    "easy": "easy",
    "medium": "medium",
    "hard": "hard",
}


def get_company_config(company_name: str) -> dict[str, str]:
    """Preset variables for a company, with a generic default."""
    preset = COMPANY_PRESETS.get(company_name.strip().lower())
    if preset:
        return dict(preset)
    return {
        "focusAreas": "frontend development, user experience",
        "companyContext": f"{company_name} is a technology company focusing on innovation and user experience.",
        "technologyStack": "React, TypeScript, CSS",
    }


def get_tech_stack_config(tech_stack: str) -> dict[str, str]:
    """Preset variables for a technology stack description."""
    normalized = tech_stack.lower()
    if "vue" in normalized:
        return dict(TECH_STACK_PRESETS["vue"])
    if "angular" in normalized:
        return dict(TECH_STACK_PRESETS["angular"])
    if "node" in normalized or "full" in normalized:
        return dict(TECH_STACK_PRESETS["fullstack"])
    return dict(TECH_STACK_PRESETS["react"])


# -----------------------------------------------------------------------------
# Default Simulation Rounds
# -----------------------------------------------------------------------------

DEFAULT_ROUNDS: list[dict] = [
    {
        "name": "DSA Round",
        "description": "Array, hashmap and recursion problems implemented in JavaScript/TypeScript.",
        "duration": "45-60 minutes",
        "focusAreas": ["JavaScript", "Algorithms", "Data Structures"],
        "difficulty": "medium",
    },
    {
        "name": "Machine Coding",
        "description": "Build functional UI components with React and TypeScript.",
        "duration": "60-90 minutes",
        "focusAreas": ["React", "State Management", "Component Design"],
        "difficulty": "medium",
    },
    {
        "name": "Frontend System Design",
        "description": "Design scalable frontend architectures and component systems.",
        "duration": "45-60 minutes",
        "focusAreas": ["Architecture", "Scalability", "Performance"],
        "difficulty": "hard",
    },
    {
        "name": "JavaScript/TypeScript Theory",
        "description": "Closures, promises, the event loop and TypeScript features.",
        "duration": "30-45 minutes",
        "focusAreas": ["JavaScript", "TypeScript", "Async Programming"],
        "difficulty": "medium",
    },
]
