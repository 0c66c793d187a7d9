"""Kanban board engine: boards, columns, tasks, comments, and attachments."""
