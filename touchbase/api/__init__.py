"""HTTP surface used by the Touchbase front end."""
