"""Game rules engine for signull rooms.

Pure rule modules (state, scoring, insights, ledger, scheduler, phases,
lobby) operate on a decoded `Room` aggregate. `gateway.MutationGateway`
is the only entry point that loads and commits rooms, through
`repository.RoomRepository`.
"""
