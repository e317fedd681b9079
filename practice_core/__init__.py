"""
practice-core

Progression and recommendation core for a listening-dictation practice app.

The package provides:
1. An experience curve mapping levels to cumulative experience, with milestones
2. Backup, verification and migration of stored progression records
3. Per-mode and cross-mode performance analysis of practice sessions
4. Difficulty and practice-habit recommendations bundled into a versioned report
"""

__version__ = "1.0.0"
