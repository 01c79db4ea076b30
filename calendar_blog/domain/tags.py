"""
Tags and tag cloud ranking.
"""
import re


class Tag:
    """
    A normalized tag name and the blog entries that reference it.

    The rank (0-9) scales the tag's weight in a tag cloud and is only
    refreshed by Blog.recalculate_tag_rankings().
    """

    def __init__(self, name, blog):
        self.name = Tag.encode(name)
        self.blog = blog
        self.rank = 0
        # entry id -> entry; a reloaded copy of an entry replaces the old one
        self._blog_entries = {}

    def __str__(self):
        return self.name

    def __repr__(self):
        return f"<Tag {self.name!r} rank={self.rank}>"

    def __eq__(self, other):
        if not isinstance(other, Tag):
            return NotImplemented
        return self.name == other.name

    def __hash__(self):
        return hash(self.name)

    def __lt__(self, other):
        return self.name < other.name

    @staticmethod
    def encode(name):
        """Normalize a tag name: trimmed, lower case, spaces as '+'."""
        return re.sub(r"\s+", "+", (name or "").strip().lower())

    def add_blog_entry(self, blog_entry):
        self._blog_entries[blog_entry.id] = blog_entry

    def remove_blog_entry(self, blog_entry):
        self._blog_entries.pop(blog_entry.id, None)

    @property
    def blog_entries(self):
        """Entries that still carry this tag."""
        return [
            e for e in list(self._blog_entries.values())
            if self.name in e.get_all_tag_names()
        ]

    @property
    def number_of_blog_entries(self):
        return len(self.blog_entries)

    def calculate_rank(self, thresholds):
        """Set the rank to the index of the first threshold not exceeded."""
        count = self.number_of_blog_entries
        for index, threshold in enumerate(thresholds):
            if count <= threshold:
                self.rank = index
                return
        self.rank = len(thresholds) - 1


def calculate_thresholds(counts):
    """
    Build the ten rank thresholds for a collection of tag entry counts.

    Six thresholds are spaced between 0 and the mean, four between the mean
    and the maximum. The mean uses integer division.
    """
    total = sum(counts)
    maximum = max(counts)
    mean = float(total // len(counts))

    thresholds = [int((i / 6.0) * mean) for i in range(1, 6)]
    thresholds.append(int(mean))
    thresholds.extend(
        int(mean + (i * ((maximum - mean) / 4.0))) for i in range(1, 4)
    )
    thresholds.append(maximum)
    return thresholds
