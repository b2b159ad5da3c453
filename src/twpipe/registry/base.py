"""
Base Registry Class

Provides common functionality for all registry types including registration,
retrieval, and validation of components.
"""

from typing import Any, Callable, Dict, Hashable, Optional
from abc import ABC, abstractmethod


class BaseRegistry(ABC):
    """Base class for all component registries."""

    def __init__(self):
        """Initialize the registry with empty component and description dictionaries."""
        self._components: Dict[Hashable, Callable[..., Any]] = {}
        self._descriptions: Dict[Hashable, str] = {}

    def register(self, key: Hashable, description: str = "") -> Callable:
        """
        Decorator to register a component.

        Args:
            key: Unique key for the component
            description: Optional description of what this component does

        Returns:
            Decorator function

        Example:
            @registry.register(PostagVariant.CHAR_GRU, "Character GRU tagger")
            def create_char_gru(hyperparams):
                return SomeModule(...)
        """

        def decorator(func: Callable) -> Callable:
            if key in self._components:
                raise ValueError(f"Component '{key}' already registered in {self.__class__.__name__}")

            self._components[key] = func
            self._descriptions[key] = description
            return func

        return decorator

    def get(self, key: Hashable) -> Optional[Callable[..., Any]]:
        """
        Get a registered component by key.

        Args:
            key: Key of the component to retrieve

        Returns:
            Component function or None if not found
        """
        return self._components.get(key)

    def list_components(self) -> Dict[Hashable, str]:
        """
        Get all registered components with their descriptions.

        Returns:
            Dictionary mapping component keys to descriptions
        """
        return {key: self._descriptions.get(key, "") for key in self._components.keys()}

    @abstractmethod
    def validate_component_exists(self, key: Hashable) -> None:
        """
        Validate that a component exists and raise an informative error if not.

        Args:
            key: Key of the component to check
        """
        pass

    @abstractmethod
    def validate_component_output(self, output: Any, key: Hashable) -> Any:
        """
        Validate the output of a component.

        Args:
            output: The output to validate
            key: Key of the component for error reporting

        Returns:
            Validated output

        Raises:
            ValueError: If validation fails
        """
        pass

    def __len__(self) -> int:
        """Return the number of registered components."""
        return len(self._components)

    def __contains__(self, key: Hashable) -> bool:
        """Check if a component is registered."""
        return key in self._components

    def __repr__(self) -> str:
        """Return string representation of the registry."""
        components = [str(key) for key in self._components.keys()]
        return f"{self.__class__.__name__}({len(components)} components: {components})"
