"""Transport implementations of :class:`~apiwire.request_factory.RequestFactory`."""
