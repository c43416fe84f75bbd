"""TripBuddy offline cache, usage limits and expense splitting."""

VERSION = "0.1.0"
