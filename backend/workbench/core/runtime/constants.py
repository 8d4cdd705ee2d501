# -*- coding: utf-8 -*-
"""
Constants for the sandbox runtime.

Note: Most tunables are loaded from settings.py (config.yaml).
These constants are fixed names and formats shared by the runtime modules.
"""

# ============================================================================
# Container labels
# ============================================================================
PROJECT_LABEL_KEY = "project"
TYPE_LABEL_KEY = "type"
ASSIGNED_PORT_LABEL_KEY = "assignedPort"

# Go template placeholder printed by `ps --format` for a missing label
MISSING_LABEL_VALUE = "<no value>"

# ============================================================================
# Image build
# ============================================================================
CONTAINERFILE_NAME = "Containerfile"
BUILD_DIR_PREFIX = "podman-app-"

# ============================================================================
# Remote filesystem traversal
# ============================================================================
PRUNED_DIRECTORIES = ("node_modules", ".next")

# Extra paths pruned when file contents are collected
CONTENT_PRUNED_PATHS = ("*/components/ui",)

# Generated or boilerplate files left out of content trees
CONTENT_EXCLUDED_FILES = (
    "bun.lock",
    "components.json",
    "next-env.d.ts",
    "package-lock.json",
    "postcss.config.mjs",
    "favicon.ico",
    ".gitignore",
)

BYTE_ORDER_MARK = "\ufeff"
READ_ERROR_PREFIX = "Error reading file"
VERIFY_LINE_COUNT = 5

# Mode given to written files; non-root dev servers must be able to read them
WRITTEN_FILE_MODE = 0o644
