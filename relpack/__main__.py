from relpack.cli.app import main

main()
