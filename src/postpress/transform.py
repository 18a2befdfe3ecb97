"""TreeTransform and TransformPipeline: ordered passes run over a parsed document."""

from abc import ABC, abstractmethod

from postpress.tree import Root


class TreeTransform(ABC):
    @abstractmethod
    async def apply(self, tree: Root) -> Root:
        """Transform the tree in place and return it."""
        ...


class TransformPipeline:
    def __init__(self, transforms: list[TreeTransform]):
        self.transforms = transforms

    async def apply(self, tree: Root) -> Root:
        for t in self.transforms:
            tree = await t.apply(tree)
        return tree
