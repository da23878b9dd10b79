# Services package init
"""
CircuitMap Backend — Services Layer
=====================================

Service Inventory:
    Pure position core (no I/O):
    - positions: grammar and classification of position tokens
    - conflicts: can a proposed position be placed next to existing breakers
    - tandem:    plan for splitting "14A/14B" into two records

    Database orchestration (AsyncSession passed in per call):
    - BreakerService: create / update / delete / split
    - PanelService:   panel CRUD, tandem migration, export / import
    - DeviceService:  device records mapped to breakers
"""
