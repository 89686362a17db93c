"""
Application constants for Repoverse.

Contains the cluster catalogue, facet vocabularies, keyword tables used by
the rule engines, and the score weights.
"""

# =============================================================================
# GitHub API
# =============================================================================

GITHUB_API_BASE = "https://api.github.com"
GITHUB_SEARCH_REPOSITORIES = f"{GITHUB_API_BASE}/search/repositories"
GITHUB_SEARCH_MAX_RESULTS = 1000  # search API never returns past the 1000th hit

# =============================================================================
# Clusters
# =============================================================================

GENERAL_CLUSTER = "general"

# Ordered: the curation job walks clusters in this order
CLUSTER_CATALOGUE = {
    "frontend": {
        "display_name": "Frontend",
        "description": "Frontend development frameworks, libraries, and tools",
        "icon": "🌐",
        "tags": [
            "javascript", "typescript", "html", "css",
            "react", "vue", "angular", "next.js", "nuxt", "svelte",
            "tutorial", "course", "learn", "guide", "example", "boilerplate", "starter",
            "template", "library", "package", "framework",
            "ui-components", "animations", "css-framework", "frontend", "web-frontend",
        ],
        "keywords": ["react", "vue", "angular", "ui-components", "css-framework", "frontend-framework"],
        "languages": ["JavaScript", "TypeScript", "HTML", "CSS"],
        "frameworks": ["React", "Vue", "Angular", "Next.js", "Nuxt", "Svelte"],
    },
    "backend": {
        "display_name": "Backend",
        "description": "Backend frameworks, APIs, and server-side tools",
        "icon": "⚙️",
        "tags": [
            "javascript", "typescript", "python", "java", "go", "rust", "php", "ruby", "scala", "elixir",
            "express", "fastapi", "django", "flask", "spring", "laravel",
            "tutorial", "course", "learn", "boilerplate", "starter", "template", "library", "package",
            "framework", "api", "rest", "graphql",
            "nodejs", "backend", "web-backend", "server", "api-framework",
        ],
        "keywords": [
            "nodejs", "express", "django", "flask", "api-framework", "backend-framework",
            "rest-api", "graphql",
        ],
        "languages": ["JavaScript", "TypeScript", "Python", "Java", "Go", "Rust", "PHP", "Ruby", "Scala", "Elixir"],
        "frameworks": ["Express", "FastAPI", "Django", "Flask", "Spring", "Laravel"],
    },
    "mobile": {
        "display_name": "Mobile",
        "description": "Mobile app development frameworks and tools",
        "icon": "📱",
        "tags": [
            "javascript", "typescript", "swift", "kotlin", "dart", "java",
            "flutter", "react-native", "ionic", "electron",
            "tutorial", "course", "learn", "boilerplate", "starter", "template", "library",
            "framework", "full-app",
            "ios", "android", "mobile-app", "mobile", "mobile-development",
        ],
        "keywords": [
            "react-native", "flutter", "mobile-app", "ios-framework", "android-framework",
            "mobile-development",
        ],
        "languages": ["JavaScript", "TypeScript", "Swift", "Kotlin", "Dart", "Java"],
        "frameworks": ["Flutter", "React Native", "Ionic", "Electron"],
    },
    "desktop": {
        "display_name": "Desktop",
        "description": "Desktop application development frameworks and tools",
        "icon": "💻",
        "tags": [
            "javascript", "typescript", "c++", "c#", "rust", "python",
            "electron", "tauri", "qt", "gtk",
            "tutorial", "course", "learn", "framework", "library", "full-app", "application",
            "desktop-app", "desktop", "desktop-application", "native-app",
        ],
        "keywords": ["desktop-application", "electron", "tauri", "desktop-app"],
        "languages": ["JavaScript", "TypeScript", "C++", "C#", "Rust", "Python"],
        "frameworks": ["Electron", "Tauri", "Qt", "GTK"],
    },
    "ai-ml": {
        "display_name": "AI / ML",
        "description": "Artificial Intelligence and Machine Learning libraries",
        "icon": "🤖",
        "tags": [
            "python", "r", "javascript", "typescript",
            "tensorflow", "pytorch", "pandas", "numpy",
            "tutorial", "course", "learn", "library", "package", "framework",
            "machine-learning", "ai", "neural-network", "deep-learning", "nlp", "ai-ml",
        ],
        "keywords": [
            "machine-learning", "tensorflow", "pytorch", "ai", "deep-learning",
            "neural-network", "nlp",
        ],
        "languages": ["Python", "R", "JavaScript", "TypeScript"],
        "frameworks": ["TensorFlow", "PyTorch", "Pandas", "NumPy"],
    },
    "data-science": {
        "display_name": "Data Science",
        "description": "Data science libraries, analytics, and visualization tools",
        "icon": "📊",
        "tags": [
            "python", "r", "scala", "javascript",
            "pandas", "numpy", "tensorflow", "pytorch",
            "tutorial", "course", "learn", "library", "package", "tool",
            "data-science", "jupyter", "analytics", "data-visualization", "data-analysis",
        ],
        "keywords": [
            "data-science", "pandas", "analytics", "jupyter", "data-visualization", "data-analysis",
        ],
        "languages": ["Python", "R", "Scala", "JavaScript"],
        "frameworks": ["Pandas", "NumPy", "TensorFlow", "PyTorch"],
    },
    "devops": {
        "display_name": "DevOps",
        "description": "DevOps tools, CI/CD, and infrastructure management",
        "icon": "🔧",
        "tags": [
            "go", "python", "bash", "shell", "javascript", "typescript",
            "docker", "kubernetes", "terraform", "ansible",
            "tutorial", "course", "learn", "tool", "utility", "library", "package",
            "ci-cd", "devops", "infrastructure", "automation",
        ],
        "keywords": [
            "docker", "kubernetes", "devops-tools", "ci-cd", "infrastructure", "terraform", "ansible",
        ],
        "languages": ["Go", "Python", "Bash", "JavaScript", "TypeScript"],
        "frameworks": ["Docker", "Kubernetes", "Terraform", "Ansible"],
    },
    "game-dev": {
        "display_name": "Game Dev",
        "description": "Game development engines, frameworks, and tools",
        "icon": "🎮",
        "tags": [
            "c++", "c#", "javascript", "typescript", "python", "rust",
            "unity", "unreal", "godot", "phaser",
            "tutorial", "course", "learn", "framework", "library", "full-app",
            "game-development", "game-engine", "gamedev", "game-dev", "graphics", "game",
        ],
        "keywords": ["game-development", "unity", "unreal-engine", "game-engine", "gamedev"],
        "languages": ["C++", "C#", "JavaScript", "TypeScript", "Python", "Rust"],
        "frameworks": ["Unity", "Unreal", "Godot", "Phaser"],
    },
}

CLUSTER_NAMES = list(CLUSTER_CATALOGUE.keys())

# =============================================================================
# Cluster Assignment Rules (first match wins, fallback GENERAL_CLUSTER)
# =============================================================================

# topics: exact topic match; phrases: whole-word match in topics/description;
# languages: primary language match
CLUSTER_RULES = [
    {
        "cluster": "frontend",
        "topics": ["react", "vue", "angular", "svelte", "nextjs", "nuxt", "frontend"],
        "phrases": ["frontend", "ui", "web app"],
        "languages": [],
    },
    {
        "cluster": "backend",
        "topics": ["express", "fastapi", "django", "flask", "spring", "laravel", "backend", "api", "server"],
        "phrases": ["backend", "api", "server"],
        "languages": [],
    },
    {
        "cluster": "mobile",
        "topics": ["flutter", "react-native", "mobile", "ios", "android", "reactnative"],
        "phrases": ["mobile", "ios", "android"],
        "languages": ["swift", "kotlin", "dart", "objective-c"],
    },
    {
        "cluster": "desktop",
        "topics": ["electron", "desktop", "tauri", "qt", "gtk"],
        "phrases": ["desktop", "native app"],
        "languages": [],
    },
    {
        "cluster": "ai-ml",
        "topics": ["machine-learning", "ai", "tensorflow", "pytorch", "neural", "deep-learning"],
        "phrases": ["machine learning", "artificial intelligence", "deep learning"],
        "languages": [],
    },
    {
        "cluster": "data-science",
        "topics": ["data-science", "data-analysis", "pandas", "numpy", "jupyter", "data-visualization"],
        "phrases": ["data science", "data analysis"],
        "languages": ["r", "jupyter notebook"],
    },
    {
        "cluster": "devops",
        "topics": ["devops", "docker", "kubernetes", "terraform", "ci-cd", "infrastructure"],
        "phrases": ["devops", "deployment"],
        "languages": ["hcl", "dockerfile"],
    },
    {
        "cluster": "game-dev",
        "topics": ["game", "unity", "unreal", "godot", "phaser", "gamedev"],
        "phrases": ["game", "gaming"],
        "languages": ["gdscript"],
    },
]

# Legacy profiles without a primary cluster: (cluster, any-of tags), in order
LEGACY_CLUSTER_RULES = [
    ("frontend", ["web-frontend", "frontend"]),
    ("backend", ["web-backend", "backend"]),
    ("ai-ml", ["ai-ml", "ai", "machine-learning"]),
    ("mobile", ["mobile"]),
    ("devops", ["devops"]),
    ("data-science", ["data-science", "data"]),
    ("frontend", ["react", "vue", "angular", "svelte", "next.js", "nuxt"]),
    ("backend", ["express", "django", "flask", "fastapi", "spring", "laravel"]),
    ("ai-ml", ["tensorflow", "pytorch"]),
    ("mobile", ["flutter", "react-native", "ionic"]),
    ("data-science", ["pandas", "numpy"]),
]
LEGACY_DEFAULT_CLUSTER = "frontend"

# =============================================================================
# Facets
# =============================================================================

LANGUAGE_FACETS = [
    "JavaScript", "TypeScript", "Python", "Java", "Go", "Rust", "C++", "C#",
    "PHP", "Ruby", "Swift", "Kotlin", "Dart", "R", "Scala", "Elixir",
]

GOAL_FACETS = {
    "learning-new-tech": ["tutorial", "course", "learn", "guide", "example", "walkthrough", "getting-started"],
    "building-project": ["boilerplate", "starter", "template", "scaffold", "project"],
    "contributing": ["open-source", "contributing", "contribute"],
    "finding-solutions": ["library", "package", "sdk", "tool", "utility"],
    "exploring": ["awesome", "curated", "list", "collection"],
}

PROJECT_TYPE_FACETS = {
    "tutorial": ["tutorial", "course", "learn", "guide"],
    "boilerplate": ["boilerplate", "starter", "template"],
    "library": ["library", "package", "sdk"],
    "framework": ["framework", "toolkit"],
    "tool": ["tool", "utility", "cli"],
    "full-app": ["app", "application", "project"],
}

FACET_KINDS = ("language", "goal", "project-type")

# Feed-side keyword sets a goal or project type must hit in the repository text
GOAL_MATCH_KEYWORDS = {
    "learning-new-tech": ["tutorial", "learn", "course"],
    "learning": ["tutorial", "learn", "course"],
    "building-project": ["boilerplate", "starter", "template"],
    "finding-solutions": ["library", "package", "tool"],
}

PROJECT_TYPE_MATCH_KEYWORDS = {
    "tutorial": ["tutorial", "course", "learn"],
    "boilerplate": ["boilerplate", "starter", "template"],
    "library": ["library", "package"],
}

# Expansion of goals into tags for the tag-fallback tier
GOAL_TAG_EXPANSIONS = {
    "learning-new-tech": ["tutorial", "course", "learn", "guide", "example"],
    "learning": ["tutorial", "course", "learn", "guide", "example"],
    "building-project": ["boilerplate", "starter", "template"],
    "finding-solutions": ["library", "package", "tool", "utility"],
}

# =============================================================================
# Tag Derivation
# =============================================================================

LANGUAGE_ALIASES = {"js": "javascript", "ts": "typescript", "cpp": "c++", "csharp": "c#"}

# (trigger words, tags added)
PROJECT_TYPE_TAG_RULES = [
    (["tutorial", "course", "learn", "guide"], ["tutorial", "course", "learn"]),
    (["boilerplate", "starter", "template"], ["boilerplate", "starter", "template"]),
    (["library", "package", "sdk"], ["library", "package"]),
    (["framework"], ["framework"]),
    (["app", "application"], ["full-app", "application"]),
    (["tool", "utility", "cli"], ["tool", "utility"]),
]

ALL_FRAMEWORKS = sorted(
    {framework for config in CLUSTER_CATALOGUE.values() for framework in config["frameworks"]}
)

MAX_REPO_TAGS = 20
MAX_MEMBERSHIP_TAGS = 15

# =============================================================================
# Quality Filter
# =============================================================================

MIN_DESCRIPTION_LENGTH = 20
AWESOME_LIST_STAR_LIMIT = 1000
CORPORATE_STAR_LIMIT = 10000
WRAPPER_STAR_LIMIT = 500
CODE_INDICATOR_STAR_LIMIT = 500

CORPORATE_OWNERS = frozenset(["microsoft", "facebook", "google", "apple", "amazon", "netflix"])

NO_CODE_KEYWORDS = [
    "no-code", "nocode", "no code",
    "low-code", "lowcode", "low code",
    "visual builder", "drag and drop builder",
    "bubble.io", "webflow", "airtable",
    "zapier integration", "make.com",
    "notion template", "coda template",
    "automation without code",
]

AI_AGENT_KEYWORDS = [
    "claude skill", "claude skills",
    "ai agent", "ai agents",
    "anthropic claude", "claude api wrapper",
    "automated agent", "agent framework",
    "ai assistant tool", "ai chatbot builder",
    "conversational ai", "ai automation tool",
    "claude integration", "claude wrapper",
]

AWESOME_LIST_MARKERS = ["awesome list", "curated list", "awesome-"]
TUTORIAL_MARKERS = ["tutorial", "learn", "course", "guide"]
WRAPPER_MARKERS = ["wrapper for", "integration for", "plugin for", "extension for"]
LIBRARY_MARKERS = ["library", "package", "sdk", "module"]

CODE_INDICATORS = [
    "library", "framework", "sdk", "package", "module",
    "tutorial", "course", "learn", "guide", "example",
    "boilerplate", "starter", "template",
    "api", "cli", "tool", "utility",
    "component", "plugin", "extension",
]

# (min stars inclusive, max stars inclusive, curation quality score)
CURATION_QUALITY_BANDS = [
    (100, 10000, 100.0),
    (10001, 50000, 80.0),
    (50, 99, 70.0),
    (10, 49, 50.0),
]
CURATION_QUALITY_DEFAULT = 30.0

# Facet-specific star minimum; clusters use CURATION_MIN_STARS
FACET_MIN_STARS = {"language": 100, "goal": 50, "project-type": 50}

# =============================================================================
# Scoring
# =============================================================================

POPULARITY_STAR_WEIGHT = 15
POPULARITY_FORK_WEIGHT = 10
POPULARITY_WATCHER_WEIGHT = 5

# (max days since last push, score)
ACTIVITY_BANDS = [(7, 100.0), (30, 90.0), (90, 70.0), (180, 50.0), (365, 30.0)]
ACTIVITY_FLOOR = 10.0
ACTIVITY_UNKNOWN = 0.0

# (max days since creation, score)
FRESHNESS_BANDS = [(30, 100.0), (90, 90.0), (180, 70.0), (365, 50.0), (730, 30.0)]
FRESHNESS_FLOOR = 10.0
FRESHNESS_UNKNOWN = 50.0

TRENDING_POPULARITY_WEIGHT = 0.6
TRENDING_ACTIVITY_WEIGHT = 0.4

RECOMMENDATION_WEIGHTS = {
    "popularity": 0.30,
    "activity": 0.25,
    "freshness": 0.20,
    "quality": 0.15,
    "trending": 0.10,
}

CURATION_QUALITY_WEIGHT = 0.7
CURATION_TAG_WEIGHT = 0.3

# =============================================================================
# Interactions
# =============================================================================

ACTION_VIEWED = "viewed"
ACTION_LIKED = "liked"
ACTION_SAVED = "saved"
ACTION_SKIPPED = "skipped"
INTERACTION_ACTIONS = (ACTION_VIEWED, ACTION_LIKED, ACTION_SAVED, ACTION_SKIPPED)

EXPERIENCE_LEVELS = ("beginner", "intermediate", "advanced")


__all__ = [
    "GITHUB_API_BASE",
    "GITHUB_SEARCH_REPOSITORIES",
    "GITHUB_SEARCH_MAX_RESULTS",
    "GENERAL_CLUSTER",
    "CLUSTER_CATALOGUE",
    "CLUSTER_NAMES",
    "CLUSTER_RULES",
    "LEGACY_CLUSTER_RULES",
    "LEGACY_DEFAULT_CLUSTER",
    "LANGUAGE_FACETS",
    "GOAL_FACETS",
    "PROJECT_TYPE_FACETS",
    "FACET_KINDS",
    "GOAL_MATCH_KEYWORDS",
    "PROJECT_TYPE_MATCH_KEYWORDS",
    "GOAL_TAG_EXPANSIONS",
    "LANGUAGE_ALIASES",
    "PROJECT_TYPE_TAG_RULES",
    "ALL_FRAMEWORKS",
    "MAX_REPO_TAGS",
    "MAX_MEMBERSHIP_TAGS",
    "MIN_DESCRIPTION_LENGTH",
    "AWESOME_LIST_STAR_LIMIT",
    "CORPORATE_STAR_LIMIT",
    "WRAPPER_STAR_LIMIT",
    "CODE_INDICATOR_STAR_LIMIT",
    "CORPORATE_OWNERS",
    "NO_CODE_KEYWORDS",
    "AI_AGENT_KEYWORDS",
    "AWESOME_LIST_MARKERS",
    "TUTORIAL_MARKERS",
    "WRAPPER_MARKERS",
    "LIBRARY_MARKERS",
    "CODE_INDICATORS",
    "CURATION_QUALITY_BANDS",
    "CURATION_QUALITY_DEFAULT",
    "FACET_MIN_STARS",
    "POPULARITY_STAR_WEIGHT",
    "POPULARITY_FORK_WEIGHT",
    "POPULARITY_WATCHER_WEIGHT",
    "ACTIVITY_BANDS",
    "ACTIVITY_FLOOR",
    "ACTIVITY_UNKNOWN",
    "FRESHNESS_BANDS",
    "FRESHNESS_FLOOR",
    "FRESHNESS_UNKNOWN",
    "TRENDING_POPULARITY_WEIGHT",
    "TRENDING_ACTIVITY_WEIGHT",
    "RECOMMENDATION_WEIGHTS",
    "CURATION_QUALITY_WEIGHT",
    "CURATION_TAG_WEIGHT",
    "ACTION_VIEWED",
    "ACTION_LIKED",
    "ACTION_SAVED",
    "ACTION_SKIPPED",
    "INTERACTION_ACTIONS",
    "EXPERIENCE_LEVELS",
]
