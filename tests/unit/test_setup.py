"""
Basic test to verify package setup is correct.
"""

def test_package_imports():
    """Test that the package can be imported."""
    import solcheck.formal
    assert solcheck.formal.__version__ == "0.1.0"
    assert hasattr(solcheck.formal, '__version__')


def test_package_structure():
    """Test that package structure is accessible."""
    from solcheck import formal
    assert formal.__version__ == "0.1.0"
    assert formal.check_source_unit is not None
