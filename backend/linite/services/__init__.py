"""
Linite Backend — Services Layer
================================

Service Inventory:
    - catalog_loader:       async catalog reads → immutable snapshots
    - priority_resolver:    one package per app (pure)
    - command_templates:    template parsing/resolution, Nix method table
    - command_synthesizer:  install/uninstall command text (pure)
    - script_builder:       bash/PowerShell script rendering
    - generator_service:    orchestrates the above per request

Only the loader and the generator service touch the database.
"""
