"""Recursive normalization of XML element trees.

Every source element becomes one of three things:

- a property on its parent (a childless element without attributes, or a
  child the classification policy declares a property),
- a ``Leaf`` (a childless element carrying attributes; its text is stored
  under the reserved content key), or
- a ``Branch`` (an element with child elements).

A childless, attribute-less element named ``description`` sets the parent's
description instead of a property. Attributes are copied after children and
content have been processed, so an attribute always wins over a property of
the same name derived from a child element. Property values derived from
text are trimmed and dropped when empty; attribute values are copied
verbatim.

The result is always rooted at a synthetic ``ROOT`` branch.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from xml_tree_normalizer.api.elements import ElementAccessor, get_accessor
from xml_tree_normalizer.shared import (
    DepthLimitExceededError,
    DiagnosticEntry,
    DiagnosticSeverity,
    InvalidElementError,
    NormalizationError,
    NormalizationMetrics,
    NormalizationResult,
    NormalizerConfig,
    get_logger,
)
from xml_tree_normalizer.shared.logging import CorrelationLogger
from xml_tree_normalizer.tree.model import Branch, Leaf, Node

PolicyFunction = Callable[[str, Branch], bool]

# Matches any parent type in TagSetPolicy.by_parent
ANY_PARENT = "*"


class ClassificationPolicy:
    """Decides which child elements are folded into properties.

    The base policy classifies nothing as a property, so every child element
    is recursed into. Subclass and override ``is_property`` to flatten
    selected simple elements, or use ``TagSetPolicy``.
    """

    def is_property(self, tag: str, node: Branch) -> bool:
        """Check if child element ``tag`` should become a property of ``node``.

        Args:
            tag: Name of the child element
            node: Branch being built for the child's parent element; its
                properties and children reflect the siblings processed so far

        Returns:
            True to store the child's text content as a property of ``node``
            instead of normalizing the child
        """
        return False


class TagSetPolicy(ClassificationPolicy):
    """Policy driven by fixed tag sets.

    Args:
        tags: Tags treated as properties under any parent
        by_parent: Mapping of parent node type to the tags treated as
            properties under that parent; the ``"*"`` key is merged into
            ``tags``
    """

    def __init__(
        self,
        tags: Iterable[str] = (),
        by_parent: Optional[Mapping[str, Iterable[str]]] = None,
    ) -> None:
        self.tags = frozenset(tags)
        parents: Dict[str, frozenset] = {}
        for parent_type, parent_tags in (by_parent or {}).items():
            if parent_type == ANY_PARENT:
                self.tags = self.tags | frozenset(parent_tags)
            else:
                parents[parent_type] = frozenset(parent_tags)
        self.by_parent = parents

    def is_property(self, tag: str, node: Branch) -> bool:
        if tag in self.tags:
            return True
        return tag in self.by_parent.get(node.type, ())

    def __repr__(self) -> str:
        return f"TagSetPolicy(tags={sorted(self.tags)}, by_parent={self.by_parent})"


class CallablePolicy(ClassificationPolicy):
    """Adapts a plain ``(tag, node) -> bool`` function to a policy."""

    def __init__(self, func: PolicyFunction) -> None:
        self.func = func

    def is_property(self, tag: str, node: Branch) -> bool:
        return bool(self.func(tag, node))


PolicyLike = Union[ClassificationPolicy, PolicyFunction, None]


def resolve_policy(policy: PolicyLike) -> ClassificationPolicy:
    """Turn ``None``, a policy instance or a callable into a policy."""
    if policy is None:
        return ClassificationPolicy()
    if isinstance(policy, ClassificationPolicy):
        return policy
    if callable(policy):
        return CallablePolicy(policy)
    raise TypeError(
        f"policy must be a ClassificationPolicy or a callable, got {type(policy).__name__}"
    )


@dataclass
class _NormalizationContext:
    """Per-call state, so normalizer instances stay shareable."""

    accessor: ElementAccessor
    config: NormalizerConfig
    logger: CorrelationLogger
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    metrics: NormalizationMetrics = field(default_factory=NormalizationMetrics)

    def diagnose(
        self,
        severity: DiagnosticSeverity,
        message: str,
        path: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        if severity == DiagnosticSeverity.WARNING:
            self.logger.warning(message, extra={"path": path})
        else:
            self.logger.debug(message, extra={"path": path})

        if not self.config.enable_diagnostics:
            return
        self.diagnostics.append(DiagnosticEntry(
            severity=severity,
            message=message,
            component="XMLNormalizer",
            path=path,
            details=details,
            correlation_id=self.config.correlation_id,
        ))


class XMLNormalizer:
    """Converts XML element trees into normalized ``Branch``/``Leaf`` trees.

    The normalizer keeps no per-document state, so one instance with a
    stateless policy can serve several threads.

    Examples:
        >>> from lxml import etree
        >>> root = etree.fromstring('<root><item id="1"><name>Widget</name></item></root>')
        >>> tree = XMLNormalizer().parse(root)
        >>> item = tree.find_all("item")[0]
        >>> item.properties
        {'name': 'Widget', 'id': '1'}
    """

    def __init__(
        self,
        policy: PolicyLike = None,
        config: Optional[NormalizerConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        """Initialize the normalizer.

        Args:
            policy: Classification policy, or a ``(tag, node) -> bool``
                function; defaults to classifying nothing as a property
            config: Normalizer configuration
            correlation_id: Overrides ``config.correlation_id`` for logging
                and diagnostics
        """
        self.policy = resolve_policy(policy)
        config = config or NormalizerConfig()
        if correlation_id is not None:
            config = config.override(correlation_id=correlation_id)
        self.config = config
        self._logger = get_logger(__name__, config.correlation_id, "normalizer")

    def parse(self, root_element: Any) -> Branch:
        """Normalize ``root_element`` and return the ``ROOT`` branch.

        Args:
            root_element: Element or document of any supported XML library

        Raises:
            InvalidElementError: If the input is not a supported element
            DepthLimitExceededError: If nesting exceeds ``config.max_depth``
        """
        return self.normalize(root_element).tree

    def normalize(
        self, root_element: Any, source: Optional[str] = None
    ) -> NormalizationResult:
        """Normalize ``root_element`` and return the tree with diagnostics.

        Args:
            root_element: Element or document of any supported XML library
            source: Optional description of where the document came from

        Returns:
            NormalizationResult whose ``tree`` is the ``ROOT`` branch
        """
        start_time = time.time()
        accessor = get_accessor(root_element)
        context = _NormalizationContext(
            accessor=accessor, config=self.config, logger=self._logger
        )

        self._logger.debug(
            "Starting normalization",
            extra={"accessor": accessor.name, "policy": type(self.policy).__name__},
        )

        tree = Branch(self.config.root_type)
        try:
            element = accessor.root_element(root_element)
            self._normalize_element(element, tree, context, 1, "")
        except RecursionError as e:
            self._logger.exception(
                "Recursion limit reached during normalization",
                extra={"max_depth": self.config.max_depth},
            )
            raise DepthLimitExceededError(self.config.max_depth) from e
        except NormalizationError as e:
            self._logger.exception(
                f"Normalization failed: {e}",
                extra={"error_type": type(e).__name__},
            )
            raise

        metrics = context.metrics
        if self.config.enable_metrics:
            metrics.processing_time_ms = (time.time() - start_time) * 1000
        else:
            metrics = NormalizationMetrics()

        self._logger.info(
            "Normalization completed",
            extra={
                "source": source,
                "nodes": tree.node_count,
                "diagnostics": len(context.diagnostics),
                **metrics.to_dict(),
            },
        )

        return NormalizationResult(
            tree=tree,
            diagnostics=context.diagnostics,
            metrics=metrics,
            correlation_id=self.config.correlation_id,
            source=source,
        )

    def _normalize_element(
        self,
        element: Any,
        parent: Branch,
        context: _NormalizationContext,
        depth: int,
        parent_path: str,
    ) -> None:
        """Fold ``element`` into ``parent``, as a property, leaf or branch."""
        accessor = context.accessor
        config = context.config
        metrics = context.metrics

        tag = self._tag_name(accessor, element, parent_path)
        path = f"{parent_path}/{tag}"
        if depth > config.max_depth:
            raise DepthLimitExceededError(config.max_depth, path)

        metrics.elements_visited += 1
        metrics.max_depth_reached = max(metrics.max_depth_reached, depth)

        children = accessor.child_elements(element)
        if children:
            node: Node = Branch(tag)
            for child in children:
                child_tag = self._tag_name(accessor, child, path)
                if self.policy.is_property(child_tag, node):
                    metrics.elements_visited += 1
                    metrics.properties_from_policy += 1
                    self._put_content(node, child_tag, accessor.text_content(child), context)
                else:
                    self._normalize_element(child, node, context, depth + 1, path)
            metrics.branches_created += 1
        else:
            content = accessor.text_content(element)
            attributes = accessor.attributes(element)
            if not attributes:
                if tag == config.description_tag:
                    if parent.description is not None:
                        context.diagnose(
                            DiagnosticSeverity.WARNING,
                            f"Repeated <{tag}> element replaces the previous description",
                            path,
                            {"previous": parent.description},
                        )
                    parent.set_description(content)
                    metrics.descriptions_set += 1
                else:
                    self._put_content(parent, tag, content, context)
                return

            node = Leaf(tag)
            self._put_content(node, config.content_key, content, context)
            metrics.leaves_created += 1

        self._copy_attributes(accessor.attributes(element), node, context, path)
        parent.append_child(node)

    @staticmethod
    def _tag_name(accessor: ElementAccessor, element: Any, parent_path: str) -> str:
        tag = accessor.tag_name(element)
        if not tag:
            raise InvalidElementError("Element has an empty tag name", parent_path or "/")
        return tag

    @staticmethod
    def _put_content(
        node: Node, key: str, content: str, context: _NormalizationContext
    ) -> None:
        if node.put_non_empty_property(key, content):
            context.metrics.properties_written += 1
        else:
            context.metrics.properties_suppressed += 1

    @staticmethod
    def _copy_attributes(
        attributes: List[Any],
        node: Node,
        context: _NormalizationContext,
        path: str,
    ) -> None:
        for name, value in attributes:
            if name in node.properties and node.properties[name] != value:
                context.diagnose(
                    DiagnosticSeverity.INFO,
                    f"Attribute '{name}' replaces the value derived from element content",
                    path,
                    {"replaced": node.properties[name], "attribute": value},
                )
            node.put_property(name, value)
            context.metrics.attributes_copied += 1


def parse(
    root_element: Any,
    policy: PolicyLike = None,
    config: Optional[NormalizerConfig] = None,
) -> Branch:
    """Normalize an element or document and return the ``ROOT`` branch.

    Examples:
        >>> import xml.etree.ElementTree as ET
        >>> tree = parse(ET.fromstring('<a><summary>hi</summary><b x="1"/></a>'),
        ...              policy=TagSetPolicy(["summary"]))
        >>> [child.type for child in tree.children[0].children]
        ['b']
    """
    return XMLNormalizer(policy, config).parse(root_element)


def normalize(
    root_element: Any,
    policy: PolicyLike = None,
    config: Optional[NormalizerConfig] = None,
    correlation_id: Optional[str] = None,
) -> NormalizationResult:
    """Normalize an element or document, returning diagnostics and metrics too."""
    return XMLNormalizer(policy, config, correlation_id).normalize(root_element)
