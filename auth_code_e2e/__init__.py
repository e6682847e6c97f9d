"""End-to-end harness for the auth code sample app against ADFS."""
