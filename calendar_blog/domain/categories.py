"""
Hierarchical categories and the builder that maintains the tree.
"""
from .tags import Tag


class Category:
    """
    Node of the category tree.

    Ids are paths: the root is "/", children look like "/java" and
    "/java/swing". The parent of a node is derived from its id.
    """

    def __init__(self, id, name, tags=""):
        self.id = id
        self.name = name
        self.tags = tags
        self.parent = None
        self.sub_categories = []
        self.blog_entry_ids = set()

    def __str__(self):
        if self.parent and not self.parent.is_root:
            return f"{self.parent} > {self.name}"
        return self.name

    def __repr__(self):
        return f"<Category {self.id!r}>"

    def __lt__(self, other):
        return self.id < other.id

    @property
    def is_root(self):
        return self.id == "/"

    @property
    def parent_id(self):
        """Return the id of the parent implied by this category's path."""
        if self.is_root:
            return None
        head = self.id.rstrip("/").rsplit("/", 1)[0]
        return head or "/"

    @property
    def tag_names(self):
        return [Tag.encode(t) for t in self.tags.replace(",", " ").split() if t.strip()]

    def add_sub_category(self, category):
        if category not in self.sub_categories:
            category.parent = self
            self.sub_categories.append(category)
            self.sub_categories.sort()

    def remove_sub_category(self, category):
        if category in self.sub_categories:
            self.sub_categories.remove(category)
            category.parent = None

    def has_category(self, category):
        """Check if category is this node or one of its descendants."""
        current = category
        while current is not None:
            if current is self:
                return True
            current = current.parent
        return False

    def get_ancestors(self):
        """Return list of ancestor categories from root to parent."""
        ancestors = []
        current = self.parent
        while current:
            ancestors.insert(0, current)
            current = current.parent
        return ancestors

    def get_descendants(self):
        """Return all descendant categories."""
        descendants = list(self.sub_categories)
        for child in self.sub_categories:
            descendants.extend(child.get_descendants())
        return descendants


class CategoryBuilder:
    """
    Transient helper over a category tree root.

    Built per call by the Blog rather than cached; category trees are small.
    """

    def __init__(self, root=None):
        self.root = root if root is not None else Category("/", "All")

    def get_categories(self):
        """Return every category in the tree, sorted by id."""
        return sorted([self.root] + self.root.get_descendants())

    def get_category(self, id):
        for category in self.get_categories():
            if category.id == id:
                return category
        return None

    def add_category(self, category):
        """
        Add a category below its path parent.

        Missing intermediate categories are created on the way down.
        """
        if category.is_root:
            self.root = category
            return category

        parent_id = category.parent_id
        parent = self.get_category(parent_id)
        if parent is None:
            parent = self.add_category(Category(parent_id, parent_id.rsplit("/", 1)[-1]))
        parent.add_sub_category(category)
        return category

    def remove_category(self, category):
        existing = self.get_category(category.id)
        if existing is not None and existing.parent is not None:
            existing.parent.remove_sub_category(existing)
