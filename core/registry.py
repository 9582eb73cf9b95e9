from typing import Any, Callable, Dict, Iterator, List, Type, TypeVar

T = TypeVar("T")


class Registry:
    """Maps names to component classes (collectors, providers, tasks)."""

    def __init__(self, kind: str):
        self._kind = kind
        self._components: Dict[str, Type[Any]] = {}

    def register(self, name: str) -> Callable[[Type[T]], Type[T]]:
        """
        A decorator to register a class with a given name.

        Raises:
            ValueError: If the name is already registered.
        """
        def decorator(cls: Type[T]) -> Type[T]:
            if name in self._components:
                raise ValueError(f"{self._kind.capitalize()} '{name}' is already registered.")
            self._components[name] = cls
            return cls
        return decorator

    def get(self, name: str) -> Type[Any]:
        """
        Retrieves a class by its name.

        Raises:
            KeyError: If the name is not registered.
        """
        try:
            return self._components[name]
        except KeyError:
            raise KeyError(
                f"Unknown {self._kind} '{name}'. Available: {', '.join(self.names()) or 'none'}"
            ) from None

    def create(self, name: str, *args: Any, **kwargs: Any) -> Any:
        """Instantiates a registered component."""
        return self.get(name)(*args, **kwargs)

    def names(self) -> List[str]:
        return sorted(self._components)

    def __contains__(self, name: str) -> bool:
        return name in self._components

    def __iter__(self) -> Iterator[str]:
        return iter(self._components)


collector_registry = Registry("collector")
provider_registry = Registry("provider")
task_registry = Registry("task")
