"""fairvrf core: configuration, selection and request resolution."""
