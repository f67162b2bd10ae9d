"""mastery: spaced-repetition scheduling for problem mastery tracking."""
