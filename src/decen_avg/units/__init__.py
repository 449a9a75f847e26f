"""Reference external units: ``python -m decen_avg.units.{init,train,test}``."""
