"""BriefDesk: mock design briefs, timed projects and AI feedback."""
