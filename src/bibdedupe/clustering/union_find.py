"""Union-Find (Disjoint Set Union) over record indices."""


class UnionFind:
    """Union-Find data structure with path compression and union by rank.

    Every element ``0..size-1`` starts as its own singleton set.

    Attributes
    ----------
    parent : list[int]
        Parent pointers for each element.
    rank : list[int]
        Rank (approximate tree height) for each root.
    """

    def __init__(self, size: int) -> None:
        """Initialize *size* singleton sets.

        Parameters
        ----------
        size : int
            Number of elements.
        """
        if size < 0:
            raise ValueError(f"size must be >= 0, got {size}")
        self.parent: list[int] = list(range(size))
        self.rank: list[int] = [0] * size

    def __len__(self) -> int:
        return len(self.parent)

    def find(self, x: int) -> int:
        """Find root of set containing x with path compression.

        Parameters
        ----------
        x : int
            Element to find.

        Returns
        -------
        int
            Root of set containing x.
        """
        root = x
        while self.parent[root] != root:
            root = self.parent[root]

        while self.parent[x] != root:
            self.parent[x], x = root, self.parent[x]

        return root

    def union(self, x: int, y: int) -> None:
        """Union sets containing x and y using union by rank.

        Parameters
        ----------
        x : int
            First element.
        y : int
            Second element.
        """
        root_x = self.find(x)
        root_y = self.find(y)

        if root_x == root_y:
            return

        if self.rank[root_x] < self.rank[root_y]:
            self.parent[root_x] = root_y
        elif self.rank[root_x] > self.rank[root_y]:
            self.parent[root_y] = root_x
        else:
            self.parent[root_y] = root_x
            self.rank[root_x] += 1

    def connected(self, x: int, y: int) -> bool:
        return self.find(x) == self.find(y)

    def get_components(self) -> list[list[int]]:
        """Get all connected components.

        Returns
        -------
        list[list[int]]
            Components with members in ascending order, ordered by their
            smallest member.
        """
        components: dict[int, list[int]] = {}

        for element in range(len(self.parent)):
            root = self.find(element)
            components.setdefault(root, []).append(element)

        return sorted(components.values(), key=lambda members: members[0])
