# src/contextpack/config.py

IGNORE_FILE_NAME = ".contextignore"

DEFAULT_EXCLUDE_PATTERNS = [
    "node_modules/**",
    ".git/**",
    "vendor/**",
    "dist/**",
    "build/**",
    "__pycache__/**",
    "*.log",
    "*.tmp",
    "*.cache",
    ".DS_Store",
    "Thumbs.db",
    "*_context.md",
]

DEFAULT_EXCLUDE_EXTENSIONS = [
    ".exe", ".dll", ".so", ".dylib",
    ".jpg", ".jpeg", ".png", ".gif", ".bmp", ".ico",
    ".mp3", ".mp4", ".avi", ".mkv", ".mov",
    ".zip", ".tar", ".gz", ".rar", ".7z",
    ".pdf", ".doc", ".docx", ".xls", ".xlsx",
]

# Scan limits
DEFAULT_MAX_DEPTH = 50
DEFAULT_SCAN_MAX_FILE_SIZE = 10 * 1024 * 1024
MAX_LINE_COUNT = 100_000
ESTIMATE_FILE_CAP = 10_000
PROGRESS_QUEUE_SIZE = 100
LARGEST_FILES_COUNT = 10

# Context generation limits
DEFAULT_CONTENT_MAX_FILE_SIZE = 50 * 1024
DEFAULT_CONTENT_MAX_TOTAL_SIZE = 10 * 1024 * 1024
FILE_LISTING_LIMIT = 20
DIRECTORY_LISTING_LIMIT = 50

# USD per 1K input tokens, used for the cost estimate only
DEFAULT_PRICE_PER_1K_TOKENS = 0.03

TEXT_EXTENSIONS = frozenset([
    ".txt", ".md", ".go", ".js", ".ts", ".py", ".java", ".c", ".cpp",
    ".h", ".hpp", ".cs", ".rb", ".php", ".html", ".css", ".scss",
    ".json", ".xml", ".yaml", ".yml", ".toml", ".ini", ".cfg",
    ".sh", ".bat", ".ps1", ".sql", ".r", ".scala", ".kt", ".rs",
])

# Only used for line counting during the scan
LINE_COUNT_EXTENSIONS = TEXT_EXTENSIONS | frozenset([
    ".jsx", ".tsx", ".vue", ".svelte", ".dart", ".swift", ".m",
])

# Earlier entries rank higher
PRIORITY_EXTENSIONS = (
    ".go", ".js", ".ts", ".py", ".java", ".c", ".cpp",
    ".md", ".txt", ".json", ".yaml", ".yml",
)

IMPORTANT_NAMES = (
    "readme", "main", "index", "app", "config", "package",
    "makefile", "dockerfile", "docker-compose",
)

LANGUAGE_MAP = {
    ".go": "go",
    ".js": "javascript",
    ".ts": "typescript",
    ".py": "python",
    ".java": "java",
    ".c": "c",
    ".cpp": "cpp",
    ".html": "html",
    ".css": "css",
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".md": "markdown",
    ".sh": "bash",
    ".sql": "sql",
}
