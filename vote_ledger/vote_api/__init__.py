"""HTTP service recording one vote per account."""
