from appship.cli.app import main

main()
