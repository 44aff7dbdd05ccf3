"""QuestLog backend: gamified course tracking."""
