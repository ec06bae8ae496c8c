"""Sample order-taking component used by discovery and conformance tests."""
